"""Exception hierarchy for the auction engine.

Two families are kept apart so callers can tell them apart:

- ``BidValidationError``: rejected user input. Safe to show and correct.
- ``EngineInvariantError``: an internal inconsistency (bad tick hint, negative
  settlement delta). These indicate a bug and must not be retried.
"""

from typing import List


class AuctionError(Exception):
    """Base class for all auction engine errors."""


class BidValidationError(AuctionError):
    """A bid was rejected; ``errors`` lists every reason."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class AuctionStateError(AuctionError):
    """Operation not permitted in the auction's current phase."""


class EngineInvariantError(AuctionError):
    """An engine invariant was violated."""


class TickPreviousInvalid(EngineInvariantError):
    """Previous-price hint is not below the price being initialized."""


class TickNotInitialized(EngineInvariantError):
    """No tick exists at a price the engine expected to be initialized."""


class NegativeDeltaError(EngineInvariantError):
    """A checkpoint delta that must be non-negative came out negative."""
