"""Tabular views of demand across ticks and of planned versus actual release."""

import numpy as np
import pandas as pd

from ..config.schema import AuctionConfig
from ..engine.emission import release_curve
from ..engine.fixed_point import MPS_TOTAL
from ..engine.state import SimulationState


def demand_distribution(state: SimulationState) -> pd.DataFrame:
    """
    Effective demand at each initialized tick, lowest price first.

    Columns: price, demand, bid_count, above_clearing, at_clearing.
    The floor tick is included even when nobody bid there.
    """
    rows = [
        {
            "price": tick.price,
            "demand": tick.currency_demand,
            "bid_count": len(tick.bid_ids),
            "above_clearing": tick.price_q96 > state.clearing_price_q96,
            "at_clearing": tick.price_q96 == state.clearing_price_q96,
        }
        for tick in state.ticks.walk()
    ]
    return pd.DataFrame(
        rows, columns=["price", "demand", "bid_count", "above_clearing", "at_clearing"]
    )


def release_comparison(state: SimulationState, config: AuctionConfig) -> pd.DataFrame:
    """
    Planned release against tokens actually cleared at every checkpoint.

    ``planned_tokens`` follows the emission schedule alone; ``cleared_tokens``
    is what demand absorbed. A gap means supply was released at the floor
    price without enough bids to take it.
    """
    blocks = sorted(state.checkpoints)
    planned_fraction = release_curve(config, blocks)
    cleared = np.array(
        [float(state.checkpoints[block].total_cleared) for block in blocks], dtype=float
    )
    emitted = np.array(
        [state.checkpoints[block].cumulative_emission for block in blocks], dtype=np.int64
    )

    df = pd.DataFrame({
        "block": blocks,
        "planned_fraction": planned_fraction,
        "emitted_fraction": emitted / MPS_TOTAL,
        "planned_tokens": planned_fraction * config.total_supply,
        "cleared_tokens": cleared,
    })
    df["shortfall_tokens"] = (df["planned_tokens"] - df["cleared_tokens"]).clip(lower=0)
    return df
