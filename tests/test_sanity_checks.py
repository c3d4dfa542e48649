"""Tests for configuration and state sanity checks."""

import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from cca_sim.config.loader import load_config
from cca_sim.config.schema import AuctionConfig
from cca_sim.config.templates import template_steps
from cca_sim.analysis.scenarios import run_scenario
from cca_sim.validation.sanity_checks import (
    SanityChecker,
    ValidationWarning,
    validate_auction,
    validate_tick_chain,
)


def config_with(**overrides):
    data = load_config().to_dict()
    data.update(overrides)
    return AuctionConfig.from_dict(data)


class TestConfigChecks:
    """Warnings about implausible configuration."""

    def test_default_config_is_clean(self):
        assert SanityChecker(load_config()).check_config_inputs() == []

    def test_under_emitting_schedule(self):
        config = config_with(steps=[{"mps": 500, "block_delta": 10_000}])
        warnings = SanityChecker(config).check_config_inputs()
        assert [w.category for w in warnings] == ["emission"]
        assert "50.00%" in warnings[0].message

    def test_template_rounding_is_flagged(self):
        steps = [step.model_dump() for step in template_steps("front_loaded")]
        config = config_with(steps=steps)
        warnings = SanityChecker(config).check_config_inputs()
        assert any(w.category == "emission" for w in warnings)

    def test_unreachable_graduation(self):
        config = config_with(required_currency_raised="5000")
        warnings = SanityChecker(config).check_config_inputs()
        assert any("Required raise" in w.message for w in warnings)

    def test_coarse_tick_spacing(self):
        config = config_with(floor_price="0.001", tick_spacing="0.001")
        warnings = SanityChecker(config).check_config_inputs()
        assert any("coarse" in w.message for w in warnings)

    def test_fine_tick_spacing(self):
        config = config_with(floor_price="1", tick_spacing="0.00001")
        warnings = SanityChecker(config).check_config_inputs()
        assert any("fine" in w.message for w in warnings)


class TestStateChecks:
    """Errors for engine inconsistencies."""

    def test_finished_auction_is_clean(self):
        result = run_scenario("hot_auction")
        assert SanityChecker(result.config).check_state(result.state) == []

    def test_price_below_floor(self):
        result = run_scenario("cold_start", run_to_end=False)
        state = result.state.copy()
        state.clearing_price_q96 = 1
        warnings = SanityChecker(result.config).check_state(state)
        assert any(w.severity == "error" and "below floor" in w.message for w in warnings)

    def test_supply_overrun(self):
        result = run_scenario("cold_start", run_to_end=False)
        state = result.state.copy()
        state.total_cleared_q96_x7 *= 10 ** 6
        warnings = SanityChecker(result.config).check_state(state)
        assert any("exceed total supply" in w.message for w in warnings)

    def test_decreasing_checkpoint(self):
        result = run_scenario("cold_start", run_to_end=False)
        state = result.state.copy()
        state.checkpoints[5] = state.checkpoints[500]
        warnings = SanityChecker(result.config).check_state(state)
        assert any(w.category == "checkpoints" for w in warnings)

    def test_validate_auction_combines_checks(self):
        result = run_scenario("cold_start", run_to_end=False)
        warnings = validate_auction(result.config, result.state)
        assert all(isinstance(w, ValidationWarning) for w in warnings)
        assert warnings == []


class TestTickChain:
    """Chain walk checks."""

    def test_broken_pointer(self):
        result = run_scenario("cold_start", run_to_end=False)
        ledger = result.state.ticks.copy()
        floor = ledger[ledger.floor_price_q96]
        floor.next_price_q96 = floor.price_q96 + 1
        problems = validate_tick_chain(ledger)
        assert problems and "uninitialized" in problems[0]

    def test_skipped_tick(self):
        result = run_scenario("cold_start", run_to_end=False)
        ledger = result.state.ticks.copy()
        prices = ledger.prices
        # Floor jumps straight to the highest tick
        ledger[prices[0]].next_price_q96 = prices[-1]
        problems = validate_tick_chain(ledger)
        assert problems == [f"Chain reaches 2 of {len(prices)} initialized ticks"]

    def test_cycle(self):
        result = run_scenario("cold_start", run_to_end=False)
        ledger = result.state.ticks.copy()
        prices = ledger.prices
        ledger[prices[-1]].next_price_q96 = prices[1]
        problems = validate_tick_chain(ledger)
        assert problems == [f"Chain is not ascending at price {ledger[prices[1]].price}"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
