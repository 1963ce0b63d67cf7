from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from lob_core.types import BookEvent, Delta, Snapshot


MAINNET_HOST = "stream.bybit.com"
TESTNET_HOST = "stream-testnet.bybit.com"
CATEGORIES = ("spot", "linear", "inverse", "option")


@dataclass(frozen=True)
class SubscriptionAck:
    success: bool
    ret_msg: str = ""
    op: Optional[str] = None
    conn_id: Optional[str] = None
    req_id: Optional[str] = None
    raw: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class Pong:
    raw: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class OpReply:
    """Reply to a request other than subscribe (unsubscribe, a failed ping, ...)."""

    op: str
    success: bool
    ret_msg: str = ""
    raw: Optional[Dict[str, Any]] = None


FeedMessage = Union[SubscriptionAck, OpReply, Pong, Snapshot, Delta]


def _opt_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class BybitAdapter:
    """Bybit v5 public orderbook channel: urls, outbound frames, inbound decoding."""

    name = "bybit"

    def __init__(self, category: str = "spot", testnet: bool = False) -> None:
        key = (category or "spot").strip().lower()
        if key not in CATEGORIES:
            raise RuntimeError(f"Unknown Bybit category {category!r}. Available: {', '.join(CATEGORIES)}")
        self.category = key
        self.testnet = bool(testnet)

    def normalize_symbol(self, symbol: str) -> str:
        return symbol.strip().upper().replace("/", "").replace("-", "")

    def ws_url(self) -> str:
        host = TESTNET_HOST if self.testnet else MAINNET_HOST
        return f"wss://{host}/v5/public/{self.category}"

    def topic(self, symbol: str, depth: int = 1) -> str:
        return f"orderbook.{int(depth)}.{self.normalize_symbol(symbol)}"

    def subscribe_message(self, symbol: str, depth: int = 1) -> dict:
        return {"op": "subscribe", "args": [self.topic(symbol, depth)]}

    def ping_message(self) -> dict:
        return {"op": "ping"}

    def parse_ws_message(self, data: Any) -> Optional[FeedMessage]:
        """Decode one JSON frame; returns None for frames the book does not care about."""
        if not isinstance(data, dict):
            return None

        op = data.get("op")
        if op == "pong" or (op == "ping" and data.get("ret_msg") == "pong"):
            return Pong(raw=data)

        if "success" in data and op not in (None, "subscribe"):
            return OpReply(
                op=str(op),
                success=bool(data.get("success")),
                ret_msg=str(data.get("ret_msg") or ""),
                raw=data,
            )

        if "success" in data:
            return SubscriptionAck(
                success=bool(data.get("success")),
                ret_msg=str(data.get("ret_msg") or ""),
                op=op,
                conn_id=data.get("conn_id"),
                req_id=data.get("req_id"),
                raw=data,
            )

        topic = data.get("topic")
        msg_type = data.get("type")
        body = data.get("data")
        if not isinstance(topic, str) or not topic.startswith("orderbook.") or not isinstance(body, dict):
            return None

        return self.parse_book(msg_type, body, data)

    def parse_book(self, msg_type: Any, body: Dict[str, Any], data: Dict[str, Any]) -> Optional[BookEvent]:
        if msg_type == "snapshot":
            cls = Snapshot
        elif msg_type == "delta":
            cls = Delta
        else:
            return None

        return cls(
            bids=body.get("b") or [],
            asks=body.get("a") or [],
            symbol=body.get("s"),
            ts_ms=_opt_int(data.get("ts")),
            update_id=_opt_int(body.get("u")),
            seq=_opt_int(body.get("seq")),
            cts_ms=_opt_int(data.get("cts")),
            raw=data,
        )
