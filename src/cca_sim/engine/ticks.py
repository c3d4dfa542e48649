"""Tick ledger - price-sorted chain of initialized price levels.

Each tick points at the next higher initialized price, or at ``MAX_TICK_PTR``
when nothing is above it. The floor price tick is created with the ledger and
acts as the permanent head of the chain. Prices are Q96 integers, so they are
exact, hashable and ordered; a sorted index alongside the chain finds insertion
points by binary search.
"""

import bisect
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterator, List, Optional, Tuple

from .errors import TickNotInitialized, TickPreviousInvalid
from .fixed_point import from_fixed

# Tail sentinel: "no higher tick"
MAX_TICK_PTR = (1 << 256) - 1


@dataclass
class Tick:
    """Aggregated demand at one price level."""
    price_q96: int
    next_price_q96: int = MAX_TICK_PTR
    currency_demand_q96: int = 0
    bid_ids: List[int] = field(default_factory=list)

    @property
    def price(self) -> Decimal:
        return from_fixed(self.price_q96)

    @property
    def currency_demand(self) -> Decimal:
        return from_fixed(self.currency_demand_q96)

    @property
    def is_last(self) -> bool:
        return self.next_price_q96 == MAX_TICK_PTR


class TickLedger:
    """Ascending singly-linked chain of ticks rooted at the floor price."""

    def __init__(self, floor_price_q96: int):
        self.floor_price_q96 = floor_price_q96
        self._ticks: Dict[int, Tick] = {floor_price_q96: Tick(price_q96=floor_price_q96)}
        self._prices: List[int] = [floor_price_q96]

    def __len__(self) -> int:
        return len(self._ticks)

    def __contains__(self, price_q96: int) -> bool:
        return price_q96 in self._ticks

    def __iter__(self) -> Iterator[Tick]:
        return self.walk()

    def __eq__(self, other) -> bool:
        if not isinstance(other, TickLedger):
            return NotImplemented
        return self.floor_price_q96 == other.floor_price_q96 and self._ticks == other._ticks

    def get(self, price_q96: int) -> Optional[Tick]:
        return self._ticks.get(price_q96)

    def __getitem__(self, price_q96: int) -> Tick:
        tick = self._ticks.get(price_q96)
        if tick is None:
            raise TickNotInitialized(f"No tick initialized at price {from_fixed(price_q96)}")
        return tick

    @property
    def prices(self) -> List[int]:
        """Initialized prices in ascending order."""
        return list(self._prices)

    def walk(self) -> Iterator[Tick]:
        """Follow ``next`` pointers from the floor sentinel to the tail."""
        price = self.floor_price_q96
        while price != MAX_TICK_PTR:
            tick = self[price]
            yield tick
            price = tick.next_price_q96

    def initialize_tick_if_needed(
        self,
        prev_price_q96: int,
        price_q96: int,
        next_active_tick_price_q96: int,
    ) -> Tuple[Tick, int]:
        """
        Return the tick at ``price_q96``, splicing a new one in if necessary.

        Args:
            prev_price_q96: Any initialized price below ``price_q96`` (hint)
            price_q96: Price to initialize
            next_active_tick_price_q96: Lowest initialized price above clearing

        Returns:
            (tick, next_active_tick_price_q96) with the latter moved to the new
            tick when it now sits between the clearing price and the old value

        Raises:
            TickPreviousInvalid: If the hint is not below the price
            TickNotInitialized: If no tick exists at the hint
        """
        existing = self._ticks.get(price_q96)
        if existing is not None:
            return existing, next_active_tick_price_q96

        if prev_price_q96 >= price_q96:
            raise TickPreviousInvalid(
                f"Previous price {from_fixed(prev_price_q96)} must be below {from_fixed(price_q96)}"
            )
        if prev_price_q96 not in self._ticks:
            raise TickNotInitialized(
                f"Previous price hint {from_fixed(prev_price_q96)} is not an initialized tick"
            )

        # Largest initialized price below the new one; never below the hint
        index = bisect.bisect_left(self._prices, price_q96)
        prev_tick = self._ticks[self._prices[index - 1]]
        old_next = prev_tick.next_price_q96

        tick = Tick(price_q96=price_q96, next_price_q96=old_next)
        prev_tick.next_price_q96 = price_q96
        self._ticks[price_q96] = tick
        self._prices.insert(index, price_q96)

        if old_next == next_active_tick_price_q96:
            next_active_tick_price_q96 = price_q96

        return tick, next_active_tick_price_q96

    def add_demand(self, price_q96: int, bid_id: int, amount_q96: int) -> Tick:
        """Record a bid's effective demand at an initialized tick."""
        tick = self[price_q96]
        tick.currency_demand_q96 += amount_q96
        tick.bid_ids.append(bid_id)
        return tick

    def copy(self) -> "TickLedger":
        clone = TickLedger.__new__(TickLedger)
        clone.floor_price_q96 = self.floor_price_q96
        clone._ticks = {
            price: Tick(
                price_q96=tick.price_q96,
                next_price_q96=tick.next_price_q96,
                currency_demand_q96=tick.currency_demand_q96,
                bid_ids=list(tick.bid_ids),
            )
            for price, tick in self._ticks.items()
        }
        clone._prices = list(self._prices)
        return clone
