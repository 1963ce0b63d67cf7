from __future__ import annotations

import gzip
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterable, Optional

from lob_core.types import Delta, Snapshot
from lob_feed.bybit import BybitAdapter

log = logging.getLogger("replay")


@dataclass
class ReplayStats:
    frames: int = 0
    events: int = 0
    bad_lines: int = 0


def _open_text(path: Path):
    if path.suffix == ".gz":
        return gzip.open(path, "rt", encoding="utf-8")
    return path.open("r", encoding="utf-8")


def iter_frames(path: Path, stats: Optional[ReplayStats] = None) -> Iterable[Any]:
    """Yield decoded JSON frames from an NDJSON capture (plain or gzip)."""
    with _open_text(path) as f:
        for lineno, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError:
                log.warning("Skipping unparseable line %s:%d", path, lineno)
                if stats is not None:
                    stats.bad_lines += 1


def replay_file(
    path: Path | str,
    on_event: Callable[[object, Optional[int]], None],
    adapter: Optional[BybitAdapter] = None,
) -> ReplayStats:
    """Feed every book event of a capture to ``on_event`` in file order."""
    path = Path(path)
    adapter = adapter or BybitAdapter()
    stats = ReplayStats()
    for frame in iter_frames(path, stats):
        stats.frames += 1
        msg = adapter.parse_ws_message(frame)
        if isinstance(msg, (Snapshot, Delta)):
            stats.events += 1
            on_event(msg, msg.ts_ms)
    log.info("Replayed %s: frames=%d events=%d bad_lines=%d", path, stats.frames, stats.events, stats.bad_lines)
    return stats
