"""Auction state model: bids, checkpoints and the aggregate simulation state.

Fixed-point fields carry the exact values used by the engine; the Decimal
properties next to them are for display and reporting only.
"""

from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional

from .fixed_point import MPS_TOTAL, from_fixed, from_fixed_x7
from .ticks import MAX_TICK_PTR, TickLedger


class BidStatus(str, Enum):
    """Lifecycle status of a bid."""
    ACTIVE = "active"
    FULLY_FILLED = "fully_filled"
    PARTIALLY_FILLED = "partially_filled"
    OUTBID = "outbid"
    REFUNDED = "refunded"


@dataclass
class Bid:
    """A single demand order.

    Immutable once created except for status, fill and refund fields and the
    two checkpoint markers maintained by block advancement.
    """
    id: int
    max_price: Decimal
    amount: Decimal
    owner: str
    start_block: int
    start_cumulative_emission: int
    max_price_q96: int
    amount_q96: int
    effective_amount_q96: int
    status: BidStatus = BidStatus.ACTIVE
    tokens_filled: Decimal = Decimal("0")
    currency_spent: Decimal = Decimal("0")
    refund: Decimal = Decimal("0")
    last_fully_filled_checkpoint_block: Optional[int] = None
    outbid_checkpoint_block: Optional[int] = None

    def __post_init__(self):
        if self.last_fully_filled_checkpoint_block is None:
            self.last_fully_filled_checkpoint_block = self.start_block

    @property
    def effective_amount(self) -> Decimal:
        """Nominal amount scaled up by the share of emission still ahead at submission."""
        return from_fixed(self.effective_amount_q96)

    @property
    def emission_remaining_at_start(self) -> int:
        return MPS_TOTAL - self.start_cumulative_emission


@dataclass(frozen=True)
class Checkpoint:
    """Snapshot of auction accounting at the end of one block."""
    block_number: int
    clearing_price_q96: int
    cumulative_emission: int
    # Sum of emission_delta * Q96**2 / clearing_price_q96 (Q96 emission per unit price)
    cumulative_emission_per_price: int
    currency_raised_q96_x7: int
    total_cleared_q96_x7: int
    # Currency raised from the tick at the clearing price during this block
    currency_at_clearing_price_q96_x7: int = 0
    # Same, summed over the consecutive blocks the clearing price has held
    cumulative_currency_at_clearing_price_q96_x7: int = 0

    @property
    def clearing_price(self) -> Decimal:
        return from_fixed(self.clearing_price_q96)

    @property
    def currency_raised(self) -> Decimal:
        return from_fixed_x7(self.currency_raised_q96_x7)

    @property
    def total_cleared(self) -> Decimal:
        return from_fixed_x7(self.total_cleared_q96_x7)

    @property
    def currency_raised_at_clearing_price(self) -> Decimal:
        return from_fixed_x7(self.currency_at_clearing_price_q96_x7)


@dataclass
class SimulationState:
    """Everything that changes while an auction runs."""
    current_block: int
    clearing_price_q96: int
    ticks: TickLedger
    currency_raised_q96_x7: int = 0
    total_cleared_q96_x7: int = 0
    sum_demand_above_clearing_q96: int = 0
    cumulative_emission: int = 0
    bids: Dict[int, Bid] = field(default_factory=dict)
    checkpoints: Dict[int, Checkpoint] = field(default_factory=dict)
    is_graduated: bool = False
    is_ended: bool = False
    next_bid_id: int = 0
    next_active_tick_price_q96: int = MAX_TICK_PTR

    @property
    def clearing_price(self) -> Decimal:
        return from_fixed(self.clearing_price_q96)

    @property
    def currency_raised(self) -> Decimal:
        return from_fixed_x7(self.currency_raised_q96_x7)

    @property
    def total_cleared(self) -> Decimal:
        return from_fixed_x7(self.total_cleared_q96_x7)

    @property
    def sum_demand_above_clearing(self) -> Decimal:
        return from_fixed(self.sum_demand_above_clearing_q96)

    @property
    def next_active_tick_price(self) -> Optional[Decimal]:
        """Lowest initialized price above clearing, or None at the tail."""
        if self.next_active_tick_price_q96 == MAX_TICK_PTR:
            return None
        return from_fixed(self.next_active_tick_price_q96)

    @property
    def emission_remaining(self) -> int:
        return MPS_TOTAL - self.cumulative_emission

    @property
    def latest_checkpoint(self) -> Checkpoint:
        return self.checkpoints[max(self.checkpoints)]

    def copy(self) -> "SimulationState":
        """Independent copy; checkpoints are frozen and shared."""
        return replace(
            self,
            ticks=self.ticks.copy(),
            bids={bid_id: replace(bid) for bid_id, bid in self.bids.items()},
            checkpoints=dict(self.checkpoints),
        )
