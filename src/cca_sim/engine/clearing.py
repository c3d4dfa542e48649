"""Clearing-price solver.

The clearing price is the demand above it divided by total supply, rounded up
so supply is never oversold. Whenever that price reaches the next initialized
tick, the tick's demand stops counting as "above clearing" and the tick price
becomes a lower bound; the loop walks up the chain until neither crossing
condition holds.
"""

import logging
from dataclasses import dataclass

from ..config.schema import AuctionConfig
from .fixed_point import MPS_TOTAL, div_up
from .state import SimulationState
from .ticks import MAX_TICK_PTR

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClearingResult:
    """Output of one solver run."""
    clearing_price_q96: int
    sum_demand_above_clearing_q96: int
    next_active_tick_price_q96: int
    ticks_crossed: int = 0


def find_clearing_price(state: SimulationState, config: AuctionConfig) -> ClearingResult:
    """
    Derive the market-clearing price for the current demand.

    The result never falls below the state's current clearing price, which
    keeps the price monotonically non-decreasing over the auction.

    Args:
        state: Current simulation state (not modified)
        config: Auction configuration

    Returns:
        ClearingResult with the new price, remaining demand above it and the
        next tick still above it
    """
    minimum_clearing_price = max(state.clearing_price_q96, config.floor_price_q96)

    if MPS_TOTAL - state.cumulative_emission <= 0:
        return ClearingResult(
            clearing_price_q96=minimum_clearing_price,
            sum_demand_above_clearing_q96=state.sum_demand_above_clearing_q96,
            next_active_tick_price_q96=state.next_active_tick_price_q96,
        )

    total_supply = config.total_supply
    sum_above = state.sum_demand_above_clearing_q96
    next_active = state.next_active_tick_price_q96
    candidate = div_up(sum_above, total_supply)
    crossed = 0

    while next_active != MAX_TICK_PTR and (
        sum_above >= total_supply * next_active or candidate == next_active
    ):
        tick = state.ticks[next_active]
        sum_above -= tick.currency_demand_q96
        minimum_clearing_price = next_active
        next_active = tick.next_price_q96
        candidate = div_up(sum_above, total_supply)
        crossed += 1

    if crossed:
        logger.debug(
            "Crossed %d tick(s) at block %d; next active tick %s",
            crossed, state.current_block,
            "tail" if next_active == MAX_TICK_PTR else next_active,
        )

    return ClearingResult(
        clearing_price_q96=max(candidate, minimum_clearing_price),
        sum_demand_above_clearing_q96=sum_above,
        next_active_tick_price_q96=next_active,
        ticks_crossed=crossed,
    )
