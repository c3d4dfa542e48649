"""Emission schedule templates and percentage-based step construction."""

from decimal import Decimal
from fractions import Fraction
from typing import Any, Dict, List, Sequence, Tuple, Union

from ..engine.fixed_point import MPS_TOTAL
from .schema import AuctionConfig, AuctionStep

Percent = Union[int, float, Decimal]


def steps_from_percentages(segments: Sequence[Tuple[Percent, int]]) -> List[AuctionStep]:
    """
    Convert ``(percent_of_supply, block_delta)`` segments into emission steps.

    Percentages are normalized to sum to 100. Every step but the last gets the
    nearest integer rate; the last one absorbs the rounding so the schedule
    never releases more than the full supply.

    Args:
        segments: Ordered (percent, block_delta) pairs

    Returns:
        List of AuctionStep
    """
    if not segments:
        raise ValueError("At least one emission segment is required")

    shares = [Fraction(Decimal(repr(p)) if isinstance(p, float) else p) for p, _ in segments]
    total = sum(shares)
    if total <= 0:
        raise ValueError("Emission percentages must sum to a positive value")

    steps = []
    emitted = 0
    last = len(segments) - 1
    for index, ((_, block_delta), share) in enumerate(zip(segments, shares)):
        if block_delta <= 0:
            steps.append(AuctionStep(mps=0, block_delta=max(block_delta, 0)))
            continue
        if index == last:
            mps = max(0, (MPS_TOTAL - emitted) // block_delta)
        else:
            mps = round(share / total * MPS_TOTAL / block_delta)
        emitted += mps * block_delta
        steps.append(AuctionStep(mps=mps, block_delta=block_delta))

    return steps


EMISSION_TEMPLATES: Dict[str, Dict[str, Any]] = {
    "linear": {
        "name": "Linear release",
        "segments": [(10, 1000)] * 10,
    },
    "front_loaded": {
        "name": "Front-loaded release",
        "segments": [(50, 2500), (50, 7500)],
    },
    "back_loaded": {
        "name": "Back-loaded release",
        "segments": [(5, 5000), (95, 5000)],
    },
}


def template_steps(name: str) -> List[AuctionStep]:
    """Emission steps for a named template."""
    if name not in EMISSION_TEMPLATES:
        available = ", ".join(sorted(EMISSION_TEMPLATES))
        raise ValueError(f"Unknown emission template '{name}'. Available: {available}")
    return steps_from_percentages(EMISSION_TEMPLATES[name]["segments"])


def build_config(
    segments: Sequence[Tuple[Percent, int]],
    start_block: int = 0,
    **params: Any,
) -> AuctionConfig:
    """
    Build a config whose end block follows from the segment durations.

    Args:
        segments: (percent, block_delta) pairs
        start_block: First auction block
        **params: Remaining AuctionConfig fields (total_supply, floor_price, ...)
    """
    steps = steps_from_percentages(segments)
    end_block = start_block + sum(step.block_delta for step in steps)
    return AuctionConfig(start_block=start_block, end_block=end_block, steps=steps, **params)
