from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, NamedTuple, Optional, Sequence, Union


class Side(str, Enum):
    BID = "bid"
    ASK = "ask"


class Level(NamedTuple):
    price: Decimal
    size: Decimal

    def __str__(self) -> str:
        return f"{self.price}={self.size}"


@dataclass(frozen=True)
class Snapshot:
    """Authoritative full book: both sides are replaced by these entries."""

    bids: Sequence = ()
    asks: Sequence = ()
    symbol: Optional[str] = None
    ts_ms: Optional[int] = None
    update_id: Optional[int] = None
    seq: Optional[int] = None
    cts_ms: Optional[int] = None
    raw: Optional[Dict[str, Any]] = None

    kind = "snapshot"


@dataclass(frozen=True)
class Delta:
    """Incremental adjustment applied on top of the current book."""

    bids: Sequence = ()
    asks: Sequence = ()
    symbol: Optional[str] = None
    ts_ms: Optional[int] = None
    update_id: Optional[int] = None
    seq: Optional[int] = None
    cts_ms: Optional[int] = None
    raw: Optional[Dict[str, Any]] = None

    kind = "delta"


BookEvent = Union[Snapshot, Delta]
