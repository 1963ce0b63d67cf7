from __future__ import annotations

import pytest

from lob_core.types import Delta, Snapshot
from lob_feed.bybit import BybitAdapter, OpReply, Pong, SubscriptionAck


def test_bybit_urls_and_subscribe_frame():
    adapter = BybitAdapter()
    assert adapter.ws_url() == "wss://stream.bybit.com/v5/public/spot"
    assert adapter.topic("btc-usdt") == "orderbook.1.BTCUSDT"
    assert adapter.subscribe_message("BTCUSDT") == {"op": "subscribe", "args": ["orderbook.1.BTCUSDT"]}
    assert adapter.ping_message() == {"op": "ping"}

    testnet = BybitAdapter(category="Linear", testnet=True)
    assert testnet.ws_url() == "wss://stream-testnet.bybit.com/v5/public/linear"
    assert testnet.topic("ETHUSDT", 50) == "orderbook.50.ETHUSDT"


def test_unknown_category_rejected():
    with pytest.raises(RuntimeError, match="Unknown Bybit category"):
        BybitAdapter(category="futures")


def test_parse_snapshot_and_delta():
    adapter = BybitAdapter()
    snap = adapter.parse_ws_message(
        {
            "topic": "orderbook.1.BTCUSDT",
            "type": "snapshot",
            "ts": 1672304484978,
            "data": {"s": "BTCUSDT", "b": [["16493.50", "0.006"]], "a": [["16611.00", "0.029"]], "u": 18521288, "seq": 7961638724},
            "cts": 1672304484976,
        }
    )
    assert isinstance(snap, Snapshot)
    assert snap.kind == "snapshot"
    assert snap.bids == [["16493.50", "0.006"]]
    assert snap.asks == [["16611.00", "0.029"]]
    assert snap.symbol == "BTCUSDT"
    assert snap.ts_ms == 1672304484978
    assert snap.update_id == 18521288
    assert snap.seq == 7961638724
    assert snap.cts_ms == 1672304484976

    delta = adapter.parse_ws_message(
        {"topic": "orderbook.1.BTCUSDT", "type": "delta", "ts": 1, "data": {"s": "BTCUSDT", "b": [["16493.50", "0"]]}}
    )
    assert isinstance(delta, Delta)
    assert delta.bids == [["16493.50", "0"]]
    assert delta.asks == []


def test_parse_ack_and_pong():
    adapter = BybitAdapter()
    ack = adapter.parse_ws_message({"success": True, "ret_msg": "subscribe", "conn_id": "abc", "op": "subscribe"})
    assert isinstance(ack, SubscriptionAck)
    assert ack.success is True
    assert ack.op == "subscribe"
    assert ack.conn_id == "abc"

    failed = adapter.parse_ws_message({"success": False, "ret_msg": "error:handler not found", "op": "subscribe"})
    assert isinstance(failed, SubscriptionAck)
    assert failed.success is False

    spot_pong = adapter.parse_ws_message({"success": True, "ret_msg": "pong", "conn_id": "abc", "op": "ping"})
    assert isinstance(spot_pong, Pong)
    assert isinstance(adapter.parse_ws_message({"op": "pong", "args": ["1"]}), Pong)


@pytest.mark.parametrize(
    "frame",
    [
        [],
        "hello",
        {"topic": "publicTrade.BTCUSDT", "type": "snapshot", "data": {"b": []}},
        {"topic": "orderbook.1.BTCUSDT", "type": "unknown", "data": {"b": []}},
        {"topic": "orderbook.1.BTCUSDT", "type": "delta"},
        {"type": "delta", "data": {"b": []}},
    ],
)
def test_irrelevant_frames_ignored(frame):
    assert BybitAdapter().parse_ws_message(frame) is None


def test_non_subscribe_replies_are_not_acks():
    adapter = BybitAdapter()

    failed_ping = adapter.parse_ws_message({"success": False, "ret_msg": "too many pings", "op": "ping"})
    assert isinstance(failed_ping, OpReply)
    assert failed_ping.op == "ping"
    assert failed_ping.success is False

    unsub = adapter.parse_ws_message({"success": True, "ret_msg": "", "op": "unsubscribe"})
    assert isinstance(unsub, OpReply)

    legacy = adapter.parse_ws_message({"success": True, "ret_msg": "subscribe"})
    assert isinstance(legacy, SubscriptionAck)
