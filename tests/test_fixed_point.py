"""Tests for Q96 fixed-point conversion and rounding helpers."""

import pytest
import sys
import os
from decimal import Decimal

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from cca_sim.engine.fixed_point import (
    MPS_TOTAL,
    Q96,
    div_up,
    from_fixed,
    from_fixed_x7,
    mul_div,
    mul_div_up,
    to_fixed,
)


class TestConversion:
    """Decimal <-> Q96 conversion."""

    def test_one_is_q96(self):
        assert to_fixed(Decimal("1")) == Q96
        assert to_fixed(1) == Q96
        assert to_fixed("2.5") == 5 * Q96 // 2

    def test_float_uses_shortest_repr(self):
        """0.001 as a float converts like the decimal 0.001."""
        assert to_fixed(0.001) == to_fixed(Decimal("0.001"))

    def test_round_trip_at_display_precision(self):
        for text in ["0.001", "0.0001", "20", "123456.789"]:
            assert from_fixed(to_fixed(Decimal(text))) == Decimal(text)

    def test_from_fixed_quantizes_to_18_places(self):
        value = from_fixed(Q96 // 3)
        assert value.as_tuple().exponent == -18
        assert value == Decimal("0.333333333333333333")

    def test_from_fixed_x7(self):
        assert from_fixed_x7(20 * Q96 * MPS_TOTAL) == Decimal("20")

    def test_integer_values_are_exact(self):
        assert to_fixed(10 ** 12) == 10 ** 12 * Q96


class TestRounding:
    """Integer division helpers."""

    def test_div_up(self):
        assert div_up(7, 2) == 4
        assert div_up(8, 2) == 4
        assert div_up(0, 5) == 0

    def test_div_up_by_zero_is_zero(self):
        assert div_up(123, 0) == 0

    def test_mul_div_floors(self):
        assert mul_div(2, 3, 4) == 1
        assert mul_div(10, 10, 7) == 14

    def test_mul_div_up_ceils(self):
        assert mul_div_up(1, 1, 3) == 1
        assert mul_div_up(2, 3, 4) == 2
        assert mul_div_up(2, 2, 4) == 1

    def test_no_overflow_with_wide_values(self):
        big = 2 ** 250
        assert mul_div(big, big, big) == big


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
