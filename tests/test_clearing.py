"""Tests for the clearing-price solver and per-block distribution."""

import pytest
import sys
import os
from decimal import Decimal

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from cca_sim.config.schema import AuctionConfig
from cca_sim.engine.clearing import find_clearing_price
from cca_sim.engine.distribution import distribute
from cca_sim.engine.fixed_point import MPS_TOTAL, Q96, div_up, to_fixed
from cca_sim.engine.ticks import MAX_TICK_PTR
from cca_sim.simulation.auction import create_initial_state, submit_bid


def small_config(**overrides):
    """1,000 tokens over 100 blocks; 100% of supply is 10 currency at 0.01."""
    params = dict(
        total_supply=1000,
        floor_price="0.001",
        tick_spacing="0.001",
        start_block=0,
        end_block=100,
        required_currency_raised="5",
        steps=[{"mps": 100_000, "block_delta": 100}],
    )
    params.update(overrides)
    return AuctionConfig(**params)


def add_raw_demand(state, config, price, amount):
    """Place demand on the ledger without running the solver."""
    price_q96 = to_fixed(Decimal(price))
    amount_q96 = to_fixed(Decimal(amount))
    _, state.next_active_tick_price_q96 = state.ticks.initialize_tick_if_needed(
        config.floor_price_q96, price_q96, state.next_active_tick_price_q96
    )
    state.ticks.add_demand(price_q96, bid_id=state.next_bid_id, amount_q96=amount_q96)
    state.next_bid_id += 1
    state.sum_demand_above_clearing_q96 += amount_q96
    return price_q96


class TestFindClearingPrice:
    """Solver behavior."""

    def test_no_demand_stays_at_floor(self):
        config = small_config()
        state = create_initial_state(config)
        result = find_clearing_price(state, config)
        assert result.clearing_price_q96 == config.floor_price_q96
        assert result.next_active_tick_price_q96 == MAX_TICK_PTR
        assert result.ticks_crossed == 0

    def test_thin_demand_stays_at_floor(self):
        config = small_config()
        state = create_initial_state(config)
        price_q96 = add_raw_demand(state, config, "0.005", "0.5")
        result = find_clearing_price(state, config)
        assert result.clearing_price_q96 == config.floor_price_q96
        assert result.next_active_tick_price_q96 == price_q96
        assert result.sum_demand_above_clearing_q96 == to_fixed(Decimal("0.5"))

    def test_candidate_between_ticks(self):
        """Demand 50 over supply 1000 clears at 0.05, below the only tick."""
        config = small_config()
        state = create_initial_state(config)
        add_raw_demand(state, config, "0.1", "50")
        result = find_clearing_price(state, config)
        assert result.clearing_price_q96 == div_up(to_fixed(Decimal("50")), 1000)
        assert result.ticks_crossed == 0

    def test_crosses_tick_when_demand_covers_it(self):
        config = small_config()
        state = create_initial_state(config)
        price_q96 = add_raw_demand(state, config, "0.01", "50")
        result = find_clearing_price(state, config)
        assert result.clearing_price_q96 == price_q96
        assert result.sum_demand_above_clearing_q96 == 0
        assert result.next_active_tick_price_q96 == MAX_TICK_PTR
        assert result.ticks_crossed == 1

    def test_crosses_several_ticks(self):
        config = small_config()
        state = create_initial_state(config)
        add_raw_demand(state, config, "0.002", "5")
        add_raw_demand(state, config, "0.003", "5")
        top = add_raw_demand(state, config, "0.02", "15")
        result = find_clearing_price(state, config)
        # 15 above 0.003 clears at 0.015, below the top tick
        assert result.ticks_crossed == 2
        assert result.next_active_tick_price_q96 == top
        assert result.clearing_price_q96 == div_up(to_fixed(Decimal("15")), 1000)

    def test_never_below_current_price(self):
        config = small_config()
        state = create_initial_state(config)
        state.clearing_price_q96 = to_fixed(Decimal("0.004"))
        add_raw_demand(state, config, "0.005", "1")
        result = find_clearing_price(state, config)
        assert result.clearing_price_q96 == to_fixed(Decimal("0.004"))

    def test_no_emission_remaining_is_unchanged(self):
        config = small_config()
        state = create_initial_state(config)
        add_raw_demand(state, config, "0.01", "50")
        state.cumulative_emission = MPS_TOTAL
        result = find_clearing_price(state, config)
        assert result.clearing_price_q96 == config.floor_price_q96
        assert result.ticks_crossed == 0

    def test_does_not_modify_state(self):
        config = small_config()
        state = create_initial_state(config)
        add_raw_demand(state, config, "0.01", "50")
        before = state.copy()
        find_clearing_price(state, config)
        assert state == before


class TestDistribute:
    """One block's currency and tokens."""

    def test_demand_above_clearing_only(self):
        config = small_config()
        state = create_initial_state(config)
        add_raw_demand(state, config, "0.005", "0.5")
        result = find_clearing_price(state, config)
        state.sum_demand_above_clearing_q96 = result.sum_demand_above_clearing_q96

        dist = distribute(state, config, 100_000, result.clearing_price_q96)
        assert dist.currency_at_clearing_price_q96_x7 == 0
        assert dist.currency_raised_q96_x7 == to_fixed(Decimal("0.5")) * 100_000
        assert dist.tokens_cleared_q96_x7 == div_up(
            dist.currency_raised_q96_x7 * Q96, config.floor_price_q96
        )

    def test_tick_at_clearing_takes_remaining_supply(self):
        config = small_config()
        state = submit_bid(
            create_initial_state(config), config,
            {"max_price": "0.01", "amount": "50", "owner": "alice"},
        )
        price_q96 = state.clearing_price_q96
        assert price_q96 == to_fixed(Decimal("0.01"))

        dist = distribute(state, config, 100_000, price_q96)
        assert dist.currency_at_clearing_price_q96_x7 == 1000 * price_q96 * 100_000
        assert dist.currency_raised_q96_x7 == dist.currency_at_clearing_price_q96_x7
        # Exactly the block's share of supply
        assert dist.tokens_cleared_q96_x7 == 1000 * 100_000 * Q96

    def test_tick_share_caps_partial_fill(self):
        """Demand at the tick smaller than the leftover supply fills only that demand."""
        config = small_config()
        state = create_initial_state(config)
        price_q96 = add_raw_demand(state, config, "0.002", "1")
        state.sum_demand_above_clearing_q96 = 0
        state.next_active_tick_price_q96 = MAX_TICK_PTR

        dist = distribute(state, config, 100_000, price_q96)
        assert dist.currency_at_clearing_price_q96_x7 == to_fixed(Decimal("1")) * 100_000

    def test_zero_emission_raises_nothing(self):
        config = small_config()
        state = create_initial_state(config)
        add_raw_demand(state, config, "0.005", "0.5")
        dist = distribute(state, config, 0, config.floor_price_q96)
        assert dist.currency_raised_q96_x7 == 0
        assert dist.tokens_cleared_q96_x7 == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
