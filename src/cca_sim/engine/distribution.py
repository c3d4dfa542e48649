"""Per-block distribution of currency raised and tokens cleared."""

from dataclasses import dataclass

from ..config.schema import AuctionConfig
from .fixed_point import Q96, div_up
from .state import SimulationState


@dataclass(frozen=True)
class Distribution:
    """Amounts produced by one block's emission, in Q96 x MPS units."""
    currency_raised_q96_x7: int
    tokens_cleared_q96_x7: int
    currency_at_clearing_price_q96_x7: int = 0


def distribute(
    state: SimulationState,
    config: AuctionConfig,
    emission_delta: int,
    clearing_price_q96: int,
) -> Distribution:
    """
    Sell one block's emission at the clearing price.

    Demand strictly above the clearing price is filled in full. If a tick
    with demand sits exactly at the clearing price, it receives whatever the
    block's supply has left after the demand above it, capped by the tick's
    own demand; the cap matters when the price was rounded up.

    Args:
        state: State after the solver ran (its sum_demand_above_clearing is
            the demand strictly above ``clearing_price_q96``)
        config: Auction configuration
        emission_delta: Emission released this block, in 1/MPS_TOTAL units
        clearing_price_q96: Clearing price for this block

    Returns:
        Distribution for the block
    """
    currency_above = state.sum_demand_above_clearing_q96 * emission_delta
    currency_at_clearing = 0

    tick = state.ticks.get(clearing_price_q96)
    if tick is not None and tick.currency_demand_q96 > 0:
        total_at_price = config.total_supply * clearing_price_q96 * emission_delta
        tick_share = tick.currency_demand_q96 * emission_delta
        currency_at_clearing = max(0, min(total_at_price - currency_above, tick_share))

    currency_raised = currency_above + currency_at_clearing
    tokens_cleared = div_up(currency_raised * Q96, clearing_price_q96)

    return Distribution(
        currency_raised_q96_x7=currency_raised,
        tokens_cleared_q96_x7=tokens_cleared,
        currency_at_clearing_price_q96_x7=currency_at_clearing,
    )
