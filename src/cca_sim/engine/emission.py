"""Emission schedule evaluator."""

from dataclasses import dataclass
from typing import Iterable

import numpy as np

from ..config.schema import AuctionConfig
from .fixed_point import MPS_TOTAL


@dataclass(frozen=True)
class StepWindow:
    """An emission step positioned on the block axis."""
    index: int
    mps: int
    start_block: int
    end_block: int  # exclusive


def cumulative_emission(config: AuctionConfig, block: int) -> int:
    """
    Fraction of supply released by ``block``, in units of 1/MPS_TOTAL.

    Args:
        config: Auction configuration
        block: Block number to evaluate

    Returns:
        Cumulative emission in [0, MPS_TOTAL]
    """
    if block <= config.start_block:
        return 0
    if block >= config.end_block:
        return MPS_TOTAL

    emitted = 0
    step_start = config.start_block
    for step in config.steps:
        if step.block_delta == 0:
            continue
        step_end = step_start + step.block_delta
        if block <= step_end:
            emitted += step.mps * (block - step_start)
            break
        emitted += step.mps * step.block_delta
        step_start = step_end

    return min(emitted, MPS_TOTAL)


def current_step(config: AuctionConfig, block: int) -> StepWindow:
    """Return the step whose window contains ``block`` (the last step past the end)."""
    step_start = config.start_block
    last = None
    for index, step in enumerate(config.steps):
        step_end = step_start + step.block_delta
        if step.block_delta > 0:
            last = StepWindow(index, step.mps, step_start, step_end)
            if block < step_end:
                return last
        step_start = step_end

    if last is None:
        raise ValueError("Emission schedule has no step with a positive duration")
    return last


def release_curve(config: AuctionConfig, blocks: Iterable[int]) -> np.ndarray:
    """Planned cumulative release (fraction of supply, 0..1) at each block."""
    values = [cumulative_emission(config, block) for block in blocks]
    return np.asarray(values, dtype=np.int64) / MPS_TOTAL
