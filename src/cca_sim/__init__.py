"""Continuous clearing auction simulator."""

__version__ = "0.3.0"
