"""Simulation runner - owns the live auction state and replays bid schedules.

Key Features:
- Single owner of the current SimulationState (one writer, no shared store)
- Replays scheduled bids in block order through the public engine operations
- Collects rejected bids instead of aborting a replay
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from ..config.schema import AuctionConfig, ScenarioBid
from ..engine.errors import BidValidationError
from ..engine.state import Bid, SimulationState
from .auction import (
    BidLike,
    advance_one_block,
    advance_to_block,
    create_initial_state,
    submit_bid,
)
from .settlement import settle_all

logger = logging.getLogger(__name__)


@dataclass
class RejectedBid:
    """A scheduled bid the engine refused."""
    bid: ScenarioBid
    errors: List[str]


@dataclass
class AuctionResult:
    """Outcome of a replayed auction."""
    config: AuctionConfig
    state: SimulationState
    settlements: List[Bid] = field(default_factory=list)
    rejected: List[RejectedBid] = field(default_factory=list)

    @property
    def summary(self) -> Dict[str, Any]:
        return {
            "block": self.state.current_block,
            "clearing_price": self.state.clearing_price,
            "currency_raised": self.state.currency_raised,
            "total_cleared": self.state.total_cleared,
            "is_graduated": self.state.is_graduated,
            "is_ended": self.state.is_ended,
            "bids": len(self.state.bids),
            "rejected_bids": len(self.rejected),
        }


class AuctionRunner:
    """Stateful wrapper around the functional engine."""

    def __init__(self, config: AuctionConfig):
        """
        Initialize auction runner.

        Args:
            config: Auction configuration
        """
        self.config = config
        self.state = create_initial_state(config)
        self.rejected: List[RejectedBid] = []

    def submit_bid(self, bid_input: BidLike) -> Bid:
        """Submit a bid at the current block and return the stored bid."""
        self.state = submit_bid(self.state, self.config, bid_input)
        return self.state.bids[self.state.next_bid_id - 1]

    def advance_block(self) -> SimulationState:
        self.state = advance_one_block(self.state, self.config)
        return self.state

    def advance_to_block(self, target_block: int) -> SimulationState:
        self.state = advance_to_block(self.state, self.config, target_block)
        return self.state

    def run_to_end(self) -> SimulationState:
        return self.advance_to_block(self.config.end_block)

    def reset(self) -> SimulationState:
        self.state = create_initial_state(self.config)
        self.rejected = []
        return self.state

    def settle(self) -> List[Bid]:
        return settle_all(self.state, self.config)

    def replay(self, bids: Iterable[Union[ScenarioBid, Mapping]]) -> List[RejectedBid]:
        """
        Submit scheduled bids in block order, advancing the auction between them.

        Bids scheduled before the current block are submitted at the current
        block. Rejected bids are logged and collected, not raised.

        Returns:
            Bids rejected during this replay
        """
        scheduled = [b if isinstance(b, ScenarioBid) else ScenarioBid(**b) for b in bids]
        scheduled.sort(key=lambda b: b.block)

        rejected = []
        for bid in scheduled:
            if bid.block > self.state.current_block:
                self.advance_to_block(bid.block)
            try:
                self.submit_bid(bid)
            except BidValidationError as exc:
                logger.warning(
                    "Bid from %s at block %d rejected: %s", bid.owner, bid.block, "; ".join(exc.errors)
                )
                rejected.append(RejectedBid(bid=bid, errors=exc.errors))

        self.rejected.extend(rejected)
        logger.info(
            "Replayed %d bid(s), %d rejected; now at block %d",
            len(scheduled), len(rejected), self.state.current_block,
        )
        return rejected

    def result(self) -> AuctionResult:
        settlements = self.settle() if self.state.is_ended else []
        return AuctionResult(
            config=self.config,
            state=self.state,
            settlements=settlements,
            rejected=list(self.rejected),
        )


def replay_bids(
    config: AuctionConfig,
    bids: Iterable[Union[ScenarioBid, Mapping]],
    run_to_end: bool = False,
    until_block: Optional[int] = None,
) -> AuctionResult:
    """
    Rebuild an auction from a bid schedule.

    Args:
        config: Auction configuration
        bids: Scheduled bids (any order)
        run_to_end: Advance to the end block after the last bid
        until_block: Advance to this block after the last bid (ignored if run_to_end)

    Returns:
        AuctionResult, settled when the auction reached its end
    """
    runner = AuctionRunner(config)
    runner.replay(bids)
    if run_to_end:
        runner.run_to_end()
    elif until_block is not None:
        runner.advance_to_block(until_block)
    return runner.result()
