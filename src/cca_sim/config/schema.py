"""Pydantic schema for auction configuration and bid input validation."""

import hashlib
import json
from decimal import Decimal
from fractions import Fraction
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..engine.fixed_point import MPS_TOTAL, to_fixed

MAX_TOTAL_SUPPLY = 2 ** 100


def _is_multiple(value: Decimal, spacing: Decimal) -> bool:
    # Exact; Decimal % overflows its context on large quotients
    return Fraction(value) % Fraction(spacing) == 0


class AuctionStep(BaseModel):
    """One segment of the emission schedule."""
    model_config = ConfigDict(frozen=True)

    mps: int = Field(ge=0, le=MPS_TOTAL, description="Supply released per block, in units of 1e-7")
    block_delta: int = Field(ge=0, description="Number of blocks the rate applies for")


class AuctionConfig(BaseModel):
    """Immutable parameters of a single auction."""
    model_config = ConfigDict(frozen=True)

    total_supply: int = Field(gt=0, le=MAX_TOTAL_SUPPLY, description="Tokens offered over the whole auction")
    floor_price: Decimal = Field(gt=0, description="Lowest clearing price, currency per token")
    tick_spacing: Decimal = Field(gt=0, description="Price granularity of bids")
    start_block: int = Field(ge=0, description="First block of the auction")
    end_block: int = Field(gt=0, description="Block at which emission completes")
    required_currency_raised: Decimal = Field(
        ge=0, default=Decimal("0"),
        description="Currency that must be raised for the auction to graduate"
    )
    steps: List[AuctionStep] = Field(min_length=1, description="Ordered emission schedule")

    @field_validator("floor_price", "tick_spacing", "required_currency_raised", mode="before")
    @classmethod
    def coerce_decimal(cls, v):
        """Route floats through str so 0.001 stays 0.001."""
        if isinstance(v, float):
            return Decimal(repr(v))
        return v

    @model_validator(mode="after")
    def validate_schedule(self):
        """Ensure the block range and step durations agree."""
        if self.end_block <= self.start_block:
            raise ValueError(
                f"end_block ({self.end_block}) must be greater than start_block ({self.start_block})"
            )
        duration = sum(step.block_delta for step in self.steps)
        if duration != self.end_block - self.start_block:
            raise ValueError(
                f"Emission steps cover {duration} blocks but the auction spans "
                f"{self.end_block - self.start_block} blocks"
            )
        if not _is_multiple(self.floor_price, self.tick_spacing):
            raise ValueError(
                f"floor_price {self.floor_price} must be a multiple of tick_spacing {self.tick_spacing}"
            )
        return self

    @property
    def floor_price_q96(self) -> int:
        return to_fixed(self.floor_price)

    @property
    def required_currency_raised_q96(self) -> int:
        return to_fixed(self.required_currency_raised)

    @property
    def total_emission(self) -> int:
        """Sum of rate x duration over all steps, before clamping."""
        return sum(step.mps * step.block_delta for step in self.steps)

    def is_tick_aligned(self, price: Decimal) -> bool:
        """Whether a price is a positive multiple of the tick spacing."""
        return price > 0 and _is_multiple(price, self.tick_spacing)

    def compute_hash(self) -> str:
        """Compute config hash for reproducibility."""
        config_str = json.dumps(self.model_dump(mode="json"), sort_keys=True)
        return hashlib.sha256(config_str.encode()).hexdigest()[:16]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AuctionConfig':
        """Create config from dictionary."""
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to a JSON-friendly dictionary."""
        return self.model_dump(mode="json")


class BidInput(BaseModel):
    """A bid as entered by a user, before engine validation.

    Only type coercion happens here; auction-level rules (tick alignment,
    price above clearing, positive amount) are checked by the engine so
    that every problem can be reported together.
    """
    model_config = ConfigDict(frozen=True)

    max_price: Decimal
    amount: Decimal
    owner: str = ""

    @field_validator("max_price", "amount", mode="before")
    @classmethod
    def coerce_decimal(cls, v):
        if isinstance(v, float):
            return Decimal(repr(v))
        return v


class ScenarioBid(BidInput):
    """A bid scheduled for submission at a given block during replay."""
    block: int = Field(ge=0, description="Block at which the bid is submitted")
