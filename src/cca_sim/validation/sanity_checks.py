"""Sanity checks and validation for auction configuration and state."""

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from ..config.schema import AuctionConfig
from ..engine.fixed_point import MPS_TOTAL, Q96
from ..engine.state import SimulationState
from ..engine.ticks import MAX_TICK_PTR, TickLedger


@dataclass
class ValidationWarning:
    """A validation warning with severity and message."""
    severity: str  # "warning" or "error"
    category: str  # e.g., "input", "emission", "bounds", "ticks"
    message: str
    details: Optional[str] = None


def validate_tick_chain(ledger: TickLedger) -> List[str]:
    """
    Check that the tick chain is strictly ascending and reaches every tick.

    Returns:
        List of problems (empty when the chain is intact)
    """
    problems = []
    seen = 0
    previous = None
    price = ledger.floor_price_q96

    while price != MAX_TICK_PTR:
        tick = ledger.get(price)
        if tick is None:
            problems.append(f"Chain points at uninitialized price {price}")
            break
        if previous is not None and tick.price_q96 <= previous:
            problems.append(f"Chain is not ascending at price {tick.price}")
            break
        if tick.currency_demand_q96 < 0:
            problems.append(f"Negative demand at price {tick.price}")
        previous = tick.price_q96
        seen += 1
        if seen > len(ledger):
            problems.append("Chain contains a cycle")
            break
        price = tick.next_price_q96

    if not problems and seen != len(ledger):
        problems.append(f"Chain reaches {seen} of {len(ledger)} initialized ticks")

    return problems


class SanityChecker:
    """Run sanity checks on configuration and auction state."""

    def __init__(self, config: AuctionConfig):
        """Initialize with configuration."""
        self.config = config

    def check_config_inputs(self) -> List[ValidationWarning]:
        """
        Check configuration inputs for implausible values.

        Returns:
            List of validation warnings
        """
        warnings = []

        # Emission should release exactly the full supply
        total = self.config.total_emission
        if total != MPS_TOTAL:
            warnings.append(ValidationWarning(
                severity="warning",
                category="emission",
                message=f"Emission schedule releases {total / MPS_TOTAL * 100:.2f}% of supply",
                details=(
                    "Release is clamped to 100% at the end block"
                    if total > MPS_TOTAL else
                    "The remainder is released all at once at the end block"
                ),
            ))

        # Graduation must be reachable even if everything sells at the floor
        max_at_floor = self.config.floor_price * self.config.total_supply
        if self.config.required_currency_raised > max_at_floor:
            warnings.append(ValidationWarning(
                severity="warning",
                category="bounds",
                message="Required raise exceeds full supply sold at the floor price",
                details=(
                    f"Required: {self.config.required_currency_raised}, "
                    f"at floor: {max_at_floor}"
                ),
            ))

        # Tick spacing relative to the floor
        ratio = self.config.tick_spacing / self.config.floor_price
        if ratio > Decimal("0.5"):
            warnings.append(ValidationWarning(
                severity="warning",
                category="input",
                message="Tick spacing is coarse relative to the floor price",
                details=f"Spacing is {ratio * 100:.1f}% of the floor",
            ))
        elif ratio < Decimal("0.0001"):
            warnings.append(ValidationWarning(
                severity="warning",
                category="input",
                message="Tick spacing is very fine relative to the floor price",
                details=f"Spacing is {ratio * 100:.4f}% of the floor",
            ))

        return warnings

    def check_state(self, state: SimulationState) -> List[ValidationWarning]:
        """
        Check auction state for engine inconsistencies.

        Args:
            state: Current simulation state

        Returns:
            List of validation warnings
        """
        warnings = []

        max_cleared = self.config.total_supply * Q96 * MPS_TOTAL
        if state.total_cleared_q96_x7 > max_cleared:
            warnings.append(ValidationWarning(
                severity="error",
                category="bounds",
                message=f"Tokens cleared exceed total supply at block {state.current_block}",
                details=f"Cleared: {state.total_cleared}, supply: {self.config.total_supply}",
            ))

        if state.clearing_price_q96 < self.config.floor_price_q96:
            warnings.append(ValidationWarning(
                severity="error",
                category="bounds",
                message=f"Clearing price below floor at block {state.current_block}",
                details=f"Price: {state.clearing_price}, floor: {self.config.floor_price}",
            ))

        previous = None
        for block in sorted(state.checkpoints):
            checkpoint = state.checkpoints[block]
            if previous is not None and (
                checkpoint.clearing_price_q96 < previous.clearing_price_q96
                or checkpoint.cumulative_emission < previous.cumulative_emission
                or checkpoint.cumulative_emission_per_price < previous.cumulative_emission_per_price
                or checkpoint.currency_raised_q96_x7 < previous.currency_raised_q96_x7
            ):
                warnings.append(ValidationWarning(
                    severity="error",
                    category="checkpoints",
                    message=f"Checkpoint at block {block} decreases relative to block {previous.block_number}",
                ))
            previous = checkpoint

        for problem in validate_tick_chain(state.ticks):
            warnings.append(ValidationWarning(
                severity="error",
                category="ticks",
                message="Tick chain is broken",
                details=problem,
            ))

        return warnings


def validate_auction(config: AuctionConfig, state: SimulationState) -> List[ValidationWarning]:
    """Run the config and state checks together."""
    checker = SanityChecker(config)
    return checker.check_config_inputs() + checker.check_state(state)
