"""Validation and sanity checks for auction simulation."""

from .sanity_checks import SanityChecker, ValidationWarning, validate_auction, validate_tick_chain

__all__ = [
    "SanityChecker",
    "ValidationWarning",
    "validate_auction",
    "validate_tick_chain",
]
