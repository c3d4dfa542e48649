"""Analysis tools for auction simulation."""

from .demand import demand_distribution, release_comparison
from .scenarios import (
    SCENARIO_LIBRARY,
    Scenario,
    ScenarioRunner,
    generate_hot_auction_bids,
    load_scenario,
    run_scenario,
)

__all__ = [
    # Demand and release views
    "demand_distribution",
    "release_comparison",
    # Scenario library
    "Scenario",
    "ScenarioRunner",
    "SCENARIO_LIBRARY",
    "generate_hot_auction_bids",
    "load_scenario",
    "run_scenario",
]
