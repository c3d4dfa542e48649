"""Auction configuration: schema, loading and emission templates."""
