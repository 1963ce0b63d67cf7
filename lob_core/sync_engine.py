from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from .local_orderbook import LocalOrderBook
from .types import BookEvent, Delta, Level, Snapshot


class SyncState(str, Enum):
    AWAITING_SNAPSHOT = "awaiting_snapshot"
    SYNCED = "synced"


@dataclass
class SyncResult:
    action: str  # "snapshot" | "applied" | "skipped"
    details: str = ""


class OrderBookSyncEngine:
    """Pure state machine folding snapshot/delta events into a local book.

    This module is intentionally I/O-free (no WS, no files). Callers feed
    events strictly in arrival order; ``apply``/``best_levels`` are serialized
    by an instance lock so a query never sees a half-applied event.

    Key behaviors:
      - a snapshot clears both sides and marks the book synced
      - deltas mutate the existing sides in place (size 0 removes a level)
      - deltas before the first snapshot are skipped unless
        ``require_snapshot`` is False
      - a malformed entry raises MalformedEntryError; entries already applied
        in that event are kept (no rollback)
    """

    def __init__(
        self,
        lob: Optional[LocalOrderBook] = None,
        require_snapshot: bool = True,
        symbol: Optional[str] = None,
    ):
        self.lob = lob or LocalOrderBook(symbol=symbol)
        self.require_snapshot = bool(require_snapshot)
        self.state = SyncState.AWAITING_SNAPSHOT
        self.snapshots_applied = 0
        self.deltas_applied = 0
        self.deltas_skipped = 0
        self._lock = threading.Lock()

    @property
    def is_stale(self) -> bool:
        return self.state is not SyncState.SYNCED

    def apply(self, event: BookEvent) -> SyncResult:
        with self._lock:
            if isinstance(event, Snapshot):
                return self._apply_snapshot(event)
            if isinstance(event, Delta):
                return self._apply_delta(event)
        raise TypeError(f"unsupported book event {type(event).__name__}")

    def _apply_snapshot(self, event: Snapshot) -> SyncResult:
        # A failed load leaves a partially filled book that must not be trusted.
        self.state = SyncState.AWAITING_SNAPSHOT
        self.lob.load_snapshot(event.bids, event.asks)
        self.state = SyncState.SYNCED
        self.snapshots_applied += 1
        return SyncResult("snapshot", f"bids={len(self.lob.bids)} asks={len(self.lob.asks)}")

    def _apply_delta(self, event: Delta) -> SyncResult:
        if self.require_snapshot and self.state is SyncState.AWAITING_SNAPSHOT:
            self.deltas_skipped += 1
            return SyncResult("skipped", "no_snapshot")
        self.lob.apply_update(event.bids, event.asks)
        self.deltas_applied += 1
        return SyncResult("applied", f"bids={len(self.lob.bids)} asks={len(self.lob.asks)}")

    def reset(self) -> None:
        """Drop all levels and wait for a fresh snapshot."""
        with self._lock:
            self.lob.clear()
            self.state = SyncState.AWAITING_SNAPSHOT

    def best_levels(self) -> Optional[Tuple[Level, Level]]:
        with self._lock:
            return self.lob.best_levels()

    def top_n(self, n: int) -> Tuple[List[Level], List[Level]]:
        with self._lock:
            return self.lob.top_n(n)
