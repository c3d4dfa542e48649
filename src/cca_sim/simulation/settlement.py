"""Final per-bid settlement once the auction has ended.

A bid consumes ``amount / emission_remaining_at_start`` currency per unit of
emission while it is above the clearing price. Summing that over checkpoints
gives currency spent from the cumulative emission delta, and tokens filled
from the cumulative emission-per-price delta.
"""

import logging
from dataclasses import replace
from decimal import Decimal
from typing import Dict, Iterable, List, Tuple

from ..config.schema import AuctionConfig
from ..engine.errors import AuctionStateError, NegativeDeltaError
from ..engine.fixed_point import Q96, from_fixed, mul_div, mul_div_up
from ..engine.state import Bid, BidStatus, Checkpoint, SimulationState

logger = logging.getLogger(__name__)


def _fully_filled_portion(bid: Bid, start: Checkpoint, end: Checkpoint) -> Tuple[int, int]:
    """(tokens_q96, currency_q96) earned between two checkpoints while above clearing."""
    emission_delta = end.cumulative_emission - start.cumulative_emission
    per_price_delta = end.cumulative_emission_per_price - start.cumulative_emission_per_price
    if emission_delta < 0 or per_price_delta < 0:
        raise NegativeDeltaError(
            f"Bid {bid.id}: negative checkpoint delta between blocks {start.block_number} and "
            f"{end.block_number} (emission {emission_delta}, per-price {per_price_delta})"
        )

    remaining = bid.emission_remaining_at_start
    tokens_q96 = mul_div(bid.amount_q96, per_price_delta, Q96 * remaining)
    currency_q96 = mul_div_up(bid.amount_q96, emission_delta, remaining)
    return tokens_q96, currency_q96


def _partially_filled_portion(bid: Bid, state: SimulationState, end: Checkpoint) -> Tuple[int, int]:
    """Share of the currency raised at the bid's tick while it was the clearing price."""
    tick = state.ticks[bid.max_price_q96]
    denominator = tick.currency_demand_q96 * bid.emission_remaining_at_start
    if denominator == 0:
        return 0, 0

    raised_at_tick = end.cumulative_currency_at_clearing_price_q96_x7
    currency_q96 = mul_div_up(bid.amount_q96, raised_at_tick, denominator)
    tokens_q96 = mul_div(bid.amount_q96 * raised_at_tick, Q96, denominator * bid.max_price_q96)
    return tokens_q96, currency_q96


def _settled(bid: Bid, status: BidStatus, tokens_q96: int = 0, currency_q96: int = 0) -> Bid:
    if currency_q96 > bid.amount_q96:
        # Rounding up can overshoot the bid; tokens shrink with the spend
        tokens_q96 = mul_div(tokens_q96, bid.amount_q96, currency_q96)
        currency_q96 = bid.amount_q96
    currency_spent = min(from_fixed(currency_q96), bid.amount)
    return replace(
        bid,
        status=status,
        tokens_filled=from_fixed(tokens_q96),
        currency_spent=currency_spent,
        refund=bid.amount - currency_spent,
    )


def settle_bid(bid: Bid, state: SimulationState, config: AuctionConfig) -> Bid:
    """
    Compute a bid's final fill and refund.

    Args:
        bid: Bid to settle (not modified)
        state: Final auction state
        config: Auction configuration

    Returns:
        Copy of the bid with status, tokens_filled, currency_spent and refund set

    Raises:
        AuctionStateError: If the auction has not ended
        NegativeDeltaError: If checkpoint accounting is inconsistent
    """
    if not state.is_ended:
        raise AuctionStateError(
            f"Cannot settle bid {bid.id} before the auction ends (block {state.current_block} "
            f"of {config.end_block})"
        )

    if not state.is_graduated:
        return _settled(bid, BidStatus.REFUNDED)

    end = state.latest_checkpoint
    start = state.checkpoints[bid.start_block]

    if bid.max_price_q96 > state.clearing_price_q96:
        tokens_q96, currency_q96 = _fully_filled_portion(bid, start, end)
        return _settled(bid, BidStatus.FULLY_FILLED, tokens_q96, currency_q96)

    if bid.max_price_q96 == state.clearing_price_q96:
        last_fully_filled = state.checkpoints[bid.last_fully_filled_checkpoint_block]
        tokens_q96, currency_q96 = _fully_filled_portion(bid, start, last_fully_filled)
        partial_tokens_q96, partial_currency_q96 = _partially_filled_portion(bid, state, end)
        return _settled(
            bid,
            BidStatus.PARTIALLY_FILLED,
            tokens_q96 + partial_tokens_q96,
            currency_q96 + partial_currency_q96,
        )

    return _settled(bid, BidStatus.OUTBID)


def settle_all(state: SimulationState, config: AuctionConfig) -> List[Bid]:
    """Settle every bid in submission order."""
    settled = [settle_bid(bid, state, config) for _, bid in sorted(state.bids.items())]
    logger.info("Settled %d bid(s) at block %d", len(settled), state.current_block)
    return settled


def summarize_settlements(bids: Iterable[Bid]) -> Dict[str, Decimal]:
    """Totals across settled bids, useful for conservation checks."""
    bids = list(bids)
    return {
        "bid_count": Decimal(len(bids)),
        "total_amount": sum((b.amount for b in bids), Decimal("0")),
        "total_currency_spent": sum((b.currency_spent for b in bids), Decimal("0")),
        "total_refund": sum((b.refund for b in bids), Decimal("0")),
        "total_tokens_filled": sum((b.tokens_filled for b in bids), Decimal("0")),
    }
