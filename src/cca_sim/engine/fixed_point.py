"""Q96 fixed-point helpers.

Demand, prices and currency are carried as integers scaled by 2**96 so that
repeated per-block accumulation never drifts. Decimals appear only at the
edges: user input on the way in, reporting on the way out.

Per-block accumulators (currency raised, tokens cleared) are additionally
multiplied by the emission rate, giving the ``*_q96_x7`` quantities used by
the distribution engine and settlement.
"""

from decimal import ROUND_HALF_EVEN, Context, Decimal, localcontext
from fractions import Fraction
from typing import Union

RESOLUTION = 96
Q96 = 1 << RESOLUTION

# 1e7 parts = 100% of supply
MPS_TOTAL = 10_000_000

# Decimal places kept when converting back to human units
DISPLAY_PLACES = 18

_WIDE = Context(prec=80, rounding=ROUND_HALF_EVEN)
_QUANTUM = Decimal(1).scaleb(-DISPLAY_PLACES)

Number = Union[Decimal, int, str, float]


def to_fixed(value: Number, scale: int = Q96) -> int:
    """Convert a human-scale number to a fixed-point integer.

    The conversion is exact up to the final rounding to the nearest unit;
    floats are converted through their shortest repr so that 0.001 means
    the decimal 0.001, not its binary approximation.
    """
    if isinstance(value, float):
        value = Decimal(repr(value))
    return round(Fraction(value) * scale)


def from_fixed(value: int, scale: int = Q96, places: int = DISPLAY_PLACES) -> Decimal:
    """Convert a fixed-point integer back to a Decimal, rounded to ``places``."""
    quantum = _QUANTUM if places == DISPLAY_PLACES else Decimal(1).scaleb(-places)
    with localcontext(_WIDE):
        return (Decimal(value) / Decimal(scale)).quantize(quantum)


def from_fixed_x7(value: int, places: int = DISPLAY_PLACES) -> Decimal:
    """Convert a Q96 x MPS accumulator back to human units."""
    return from_fixed(value, scale=Q96 * MPS_TOTAL, places=places)


def div_up(a: int, b: int) -> int:
    """Ceiling division; returns 0 when ``b`` is 0."""
    if b == 0:
        return 0
    return (a + b - 1) // b


def mul_div(a: int, b: int, denominator: int) -> int:
    """floor(a * b / denominator)"""
    return (a * b) // denominator


def mul_div_up(a: int, b: int, denominator: int) -> int:
    """ceil(a * b / denominator)"""
    return div_up(a * b, denominator)
