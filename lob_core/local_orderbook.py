from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from itertools import islice
from typing import Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

from sortedcontainers import SortedDict

from .types import Level, Side


class ApplyError(ValueError):
    """Raised when a book event cannot be folded into the book."""


class MalformedEntryError(ApplyError):
    def __init__(self, side: Side, index: int, entry, reason: str) -> None:
        self.side = side
        self.index = index
        self.entry = entry
        self.reason = reason
        super().__init__(f"malformed {side.value} entry #{index} {entry!r}: {reason}")


def _to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise InvalidOperation(f"not a decimal: {value!r}")
    return Decimal(str(value).strip())


def parse_entry(side: Side, index: int, entry) -> Tuple[Decimal, Decimal]:
    """Validate one ``[price, size]`` wire entry and return exact decimals."""
    if isinstance(entry, (str, bytes)) or not isinstance(entry, Sequence):
        raise MalformedEntryError(side, index, entry, "expected [price, size]")
    if len(entry) != 2:
        raise MalformedEntryError(side, index, entry, f"expected 2 fields, got {len(entry)}")

    try:
        price = _to_decimal(entry[0])
        size = _to_decimal(entry[1])
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise MalformedEntryError(side, index, entry, "not a decimal") from exc

    if not price.is_finite() or not size.is_finite():
        raise MalformedEntryError(side, index, entry, "not a finite decimal")
    if price <= 0:
        raise MalformedEntryError(side, index, entry, "price must be positive")
    if size < 0:
        raise MalformedEntryError(side, index, entry, "size must not be negative")
    return price, size


class BookSide:
    """One side of the book: unique prices, iterated best-first.

    Levels are kept in a SortedDict ascending by price; the bid side simply
    walks it from the top.
    """

    def __init__(self, side: Side) -> None:
        self.side = side
        self._levels: SortedDict = SortedDict()

    @property
    def descending(self) -> bool:
        return self.side is Side.BID

    def __len__(self) -> int:
        return len(self._levels)

    def __contains__(self, price) -> bool:
        return _to_decimal(price) in self._levels

    def __iter__(self) -> Iterator[Level]:
        items = reversed(self._levels.items()) if self.descending else self._levels.items()
        for price, size in items:
            yield Level(price, size)

    def get(self, price) -> Optional[Decimal]:
        return self._levels.get(_to_decimal(price))

    def best(self) -> Optional[Level]:
        if not self._levels:
            return None
        price, size = self._levels.peekitem(-1 if self.descending else 0)
        return Level(price, size)

    def set_level(self, price: Decimal, size: Decimal) -> None:
        if size == 0:
            self._levels.pop(price, None)
        else:
            self._levels[price] = size

    def apply_updates(self, updates: Optional[Iterable]) -> int:
        """Apply ``[price, size]`` entries in order; returns how many were applied.

        Stops at the first malformed entry; entries before it stay applied.
        """
        if updates is None:
            return 0
        if isinstance(updates, (str, bytes, Mapping)) or not isinstance(updates, Iterable):
            raise MalformedEntryError(self.side, 0, updates, "expected a list of [price, size]")

        applied = 0
        for index, entry in enumerate(updates):
            price, size = parse_entry(self.side, index, entry)
            self.set_level(price, size)
            applied += 1
        return applied

    def clear(self) -> None:
        self._levels.clear()

    def top_n(self, n: int) -> List[Level]:
        if n <= 0:
            return []
        return list(islice(iter(self), n))


@dataclass
class LocalOrderBook:
    """In-memory L2 book keyed by exact decimal prices."""

    symbol: Optional[str] = None
    bids: BookSide = field(default_factory=lambda: BookSide(Side.BID))
    asks: BookSide = field(default_factory=lambda: BookSide(Side.ASK))

    def clear(self) -> None:
        self.bids.clear()
        self.asks.clear()

    def load_snapshot(self, bids, asks) -> None:
        self.clear()
        self.bids.apply_updates(bids)
        self.asks.apply_updates(asks)

    def apply_update(self, bids, asks) -> None:
        self.bids.apply_updates(bids)
        self.asks.apply_updates(asks)

    def best_bid(self) -> Optional[Level]:
        return self.bids.best()

    def best_ask(self) -> Optional[Level]:
        return self.asks.best()

    def best_levels(self) -> Optional[Tuple[Level, Level]]:
        bid = self.bids.best()
        ask = self.asks.best()
        if bid is None or ask is None:
            return None
        return bid, ask

    def levels(self) -> Tuple[List[Level], List[Level]]:
        return list(self.bids), list(self.asks)

    def top_n(self, n: int) -> Tuple[List[Level], List[Level]]:
        return self.bids.top_n(n), self.asks.top_n(n)
