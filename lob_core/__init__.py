"""Order book reconciliation core: book sides, events and the sync engine."""

from .local_orderbook import ApplyError, BookSide, LocalOrderBook, MalformedEntryError
from .sync_engine import OrderBookSyncEngine, SyncResult, SyncState
from .types import BookEvent, Delta, Level, Side, Snapshot

__all__ = [
    "ApplyError",
    "BookEvent",
    "BookSide",
    "Delta",
    "Level",
    "LocalOrderBook",
    "MalformedEntryError",
    "OrderBookSyncEngine",
    "Side",
    "Snapshot",
    "SyncResult",
    "SyncState",
]
