"""Auction engine: fixed point, emission, ticks, clearing and distribution."""
