"""Predefined auction scenarios for exploring clearing dynamics."""

import copy
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from ..config.loader import load_scenario_file
from ..config.schema import AuctionConfig, ScenarioBid
from ..simulation.runner import AuctionResult, replay_bids


@dataclass
class Scenario:
    """A named auction setup with a scheduled bid list."""
    name: str
    description: str
    category: str  # "baseline", "demand", "graduation", "fill", "timing"
    config: Dict[str, Any]
    bids: List[Dict[str, Any]] = field(default_factory=list)
    bid_generator: Optional[Callable[[int], List[Dict[str, Any]]]] = None

    def build_config(self, overrides: Dict[str, Any] = None) -> AuctionConfig:
        data = copy.deepcopy(self.config)
        data.update(overrides or {})
        return AuctionConfig.from_dict(data)

    def build_bids(self, seed: int = 42) -> List[ScenarioBid]:
        entries = self.bid_generator(seed) if self.bid_generator else self.bids
        return [ScenarioBid(**entry) for entry in entries]


# Single 10,000-block linear release, 1M tokens
BASE_CONFIG = {
    "total_supply": 1_000_000,
    "floor_price": "0.001",
    "tick_spacing": "0.0001",
    "start_block": 0,
    "end_block": 10_000,
    "required_currency_raised": "100",
    "steps": [{"mps": 1000, "block_delta": 10_000}],
}


def _with(**overrides) -> Dict[str, Any]:
    data = copy.deepcopy(BASE_CONFIG)
    data.update(overrides)
    return data


def generate_hot_auction_bids(seed: int = 42, count: int = 50) -> List[Dict[str, Any]]:
    """
    Many bidders arriving in the first half of the auction.

    Prices are drawn uniformly over [0.001, 0.010] and rounded up to the tick
    spacing; amounts over [1, 31).
    """
    rng = np.random.default_rng(seed)
    blocks = rng.integers(0, 5000, size=count)
    ticks = np.ceil((0.001 + rng.random(count) * 0.009) / 0.0001).astype(int)
    amounts = 1 + rng.random(count) * 30

    return [
        {
            "block": int(blocks[i]),
            "max_price": Decimal(int(ticks[i])) * Decimal("0.0001"),
            "amount": Decimal(f"{amounts[i]:.4f}"),
            "owner": f"User_{i + 1}",
        }
        for i in range(count)
    ]


SCENARIO_LIBRARY = {
    "cold_start": Scenario(
        name="Cold Start",
        description="A few small bids; price stays near the floor",
        category="baseline",
        config=_with(),
        bids=[
            {"block": 100, "max_price": "0.0012", "amount": "5", "owner": "User_1"},
            {"block": 500, "max_price": "0.0011", "amount": "3", "owner": "User_2"},
            {"block": 1000, "max_price": "0.0015", "amount": "8", "owner": "User_3"},
        ],
    ),

    "hot_auction": Scenario(
        name="Hot Auction",
        description="Fifty bidders; the clearing price climbs quickly",
        category="demand",
        config=_with(),
        bid_generator=generate_hot_auction_bids,
    ),

    "graduation_edge": Scenario(
        name="Graduation Edge",
        description="Currency raised ends up close to the graduation threshold",
        category="graduation",
        config=_with(),
        bids=[
            {"block": 100, "max_price": "0.002", "amount": "30", "owner": "User_1"},
            {"block": 500, "max_price": "0.0025", "amount": "25", "owner": "User_2"},
            {"block": 1000, "max_price": "0.003", "amount": "20", "owner": "User_3"},
            {"block": 2000, "max_price": "0.0022", "amount": "23", "owner": "User_4"},
        ],
    ),

    "partial_fill": Scenario(
        name="Partial Fill",
        description="Several bids share the tick the auction clears at",
        category="fill",
        config=_with(required_currency_raised="50"),
        bids=[
            {"block": 100, "max_price": "0.002", "amount": "20", "owner": "User_1"},
            {"block": 200, "max_price": "0.002", "amount": "15", "owner": "User_2"},
            {"block": 300, "max_price": "0.002", "amount": "25", "owner": "User_3"},
            {"block": 400, "max_price": "0.002", "amount": "10", "owner": "User_4"},
        ],
    ),

    "time_weighting": Scenario(
        name="Time Weighting",
        description="Equal bids submitted early, midway and late",
        category="timing",
        config=_with(required_currency_raised="50"),
        bids=[
            {"block": 100, "max_price": "0.003", "amount": "10", "owner": "Early_User"},
            {"block": 5000, "max_price": "0.003", "amount": "10", "owner": "Mid_User"},
            {"block": 9000, "max_price": "0.003", "amount": "10", "owner": "Late_User"},
        ],
    ),
}


class ScenarioRunner:
    """Run library scenarios end to end."""

    def __init__(self, library: Dict[str, Scenario] = None):
        self.library = library if library is not None else SCENARIO_LIBRARY

    def run(
        self,
        key: str,
        seed: int = 42,
        run_to_end: bool = True,
        config_overrides: Dict[str, Any] = None,
    ) -> AuctionResult:
        """
        Replay one scenario.

        Args:
            key: Scenario key in the library
            seed: Seed for generated bid lists
            run_to_end: Advance to the end block and settle
            config_overrides: Top-level config fields to replace

        Returns:
            AuctionResult
        """
        if key not in self.library:
            available = ", ".join(sorted(self.library))
            raise ValueError(f"Unknown scenario '{key}'. Available: {available}")

        scenario = self.library[key]
        config = scenario.build_config(config_overrides)
        return replay_bids(config, scenario.build_bids(seed), run_to_end=run_to_end)

    def run_all(self, seed: int = 42) -> Dict[str, AuctionResult]:
        return {key: self.run(key, seed=seed) for key in self.library}


def run_scenario(key: str, seed: int = 42, run_to_end: bool = True) -> AuctionResult:
    """Replay a library scenario by key."""
    return ScenarioRunner().run(key, seed=seed, run_to_end=run_to_end)


def load_scenario(path: str, run_to_end: bool = True) -> AuctionResult:
    """Replay a YAML scenario file (``config`` plus a ``bids`` list)."""
    config, bids = load_scenario_file(path)
    return replay_bids(config, bids, run_to_end=run_to_end)
