from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from lob_core.types import Level

EMPTY_BOOK = "Order book is empty."


def format_best_levels(best: Optional[Tuple[Level, Level]], stale: bool = False) -> List[str]:
    if best is None:
        return [EMPTY_BOOK]
    bid, ask = best
    suffix = " (stale)" if stale else ""
    return [f"Best Bid: {bid}{suffix}", f"Best Ask: {ask}{suffix}"]


def format_top_levels(bids: Sequence[Level], asks: Sequence[Level], stale: bool = False) -> List[str]:
    """Two-column ladder, best level first on each side."""
    if not bids or not asks:
        return [EMPTY_BOOK]
    lines = [f"{'bid':>24} | {'ask':<24}" + (" (stale)" if stale else "")]
    for i in range(max(len(bids), len(asks))):
        left = str(bids[i]) if i < len(bids) else ""
        right = str(asks[i]) if i < len(asks) else ""
        lines.append(f"{left:>24} | {right:<24}")
    return lines
