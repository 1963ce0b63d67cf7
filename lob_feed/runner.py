from __future__ import annotations

import argparse
import logging
from typing import Callable, List, Optional

from lob_core.local_orderbook import MalformedEntryError
from lob_core.sync_engine import OrderBookSyncEngine
from lob_core.types import Snapshot
from lob_feed import settings
from lob_feed.bybit import BybitAdapter, SubscriptionAck
from lob_feed.display import format_best_levels, format_top_levels
from lob_feed.logging_config import setup_logging
from lob_feed.replay import replay_file
from lob_feed.ws_stream import BybitWSStream


class BookRunner:
    """Feeds decoded book events into one engine and prints the top of book after each."""

    def __init__(
        self,
        engine: OrderBookSyncEngine,
        levels: int = 1,
        out: Callable[[str], None] = print,
    ) -> None:
        self.engine = engine
        self.levels = max(1, int(levels))
        self.out = out
        self.log = logging.getLogger("runner")
        self.subscribed = False
        self.errors: List[str] = []
        self.close_reason: Optional[str] = None
        self.malformed_count = 0

    def on_event(self, event, recv_ms: Optional[int] = None) -> None:
        if isinstance(event, Snapshot):
            self.log.info("Received snapshot.")
        try:
            result = self.engine.apply(event)
        except MalformedEntryError as exc:
            self.malformed_count += 1
            self.log.warning("Malformed %s, resetting book until next snapshot: %s", event.kind, exc)
            self.engine.reset()
        else:
            if result.action == "skipped":
                self.log.debug("Skipped %s: %s", event.kind, result.details)
        self.display()

    def display(self) -> None:
        stale = self.engine.is_stale
        if self.levels == 1:
            lines = format_best_levels(self.engine.best_levels(), stale=stale)
        else:
            bids, asks = self.engine.top_n(self.levels)
            lines = format_top_levels(bids, asks, stale=stale)
        for line in lines:
            self.out(line)

    def on_subscribed(self, ack: SubscriptionAck) -> None:
        self.subscribed = True

    def on_error(self, reason: str) -> None:
        self.errors.append(reason)

    def on_closed(self, reason: str) -> None:
        self.close_reason = reason


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Maintain a local Bybit order book from the public websocket feed.")
    ap.add_argument("--symbol", default=settings.SYMBOL)
    ap.add_argument("--category", default=settings.BYBIT_CATEGORY, help="spot | linear | inverse | option")
    ap.add_argument("--depth", type=int, default=settings.ORDERBOOK_DEPTH, help="Bybit orderbook depth (1, 50, 200, ...)")
    ap.add_argument("--testnet", action="store_true", default=settings.BYBIT_TESTNET)
    ap.add_argument("--levels", type=int, default=settings.DISPLAY_LEVELS, help="Levels per side to print")
    ap.add_argument(
        "--allow-delta-first",
        action="store_true",
        default=not settings.REQUIRE_SNAPSHOT,
        help="Apply deltas that arrive before the first snapshot",
    )
    ap.add_argument("--replay", default=None, help="Replay raw frames from an NDJSON(.gz) capture instead of connecting")
    ap.add_argument("--log-level", default=settings.LOG_LEVEL)
    ap.add_argument("--log-dir", default=settings.LOG_DIR)
    ap.add_argument("--no-log-file", action="store_true")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        adapter = BybitAdapter(category=args.category, testnet=args.testnet)
    except RuntimeError as exc:
        raise SystemExit(str(exc))
    symbol = adapter.normalize_symbol(args.symbol)

    setup_logging(
        level=args.log_level,
        component="lob_feed",
        subdir=symbol,
        base_dir=args.log_dir,
        tz=settings.LOG_TZ,
        to_file=not args.no_log_file,
    )
    log = logging.getLogger("main")

    engine = OrderBookSyncEngine(require_snapshot=not args.allow_delta_first, symbol=symbol)
    runner = BookRunner(engine, levels=args.levels)

    if args.replay:
        replay_file(args.replay, runner.on_event, adapter=adapter)
        return 0

    stream = BybitWSStream(
        adapter,
        symbol,
        on_event=runner.on_event,
        depth=args.depth,
        on_subscribed=runner.on_subscribed,
        on_error=runner.on_error,
        on_closed=runner.on_closed,
        insecure_tls=settings.INSECURE_TLS,
        ping_interval_s=settings.WS_PING_INTERVAL_S,
        open_timeout_s=settings.WS_OPEN_TIMEOUT_S,
        recv_poll_timeout_s=settings.WS_RECV_POLL_TIMEOUT_S,
    )
    log.info("Connecting to %s topic=%s", stream.ws_url, stream.topic)
    try:
        ok = stream.run()
    except KeyboardInterrupt:
        stream.close()
        log.info("Interrupted")
        return 0
    log.info(
        "Session ended reason=%s snapshots=%d deltas=%d skipped=%d malformed=%d",
        runner.close_reason,
        engine.snapshots_applied,
        engine.deltas_applied,
        engine.deltas_skipped,
        runner.malformed_count,
    )
    return 0 if ok and not runner.errors else 1
