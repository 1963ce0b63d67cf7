"""Bybit public orderbook feed: wire codec, websocket session and CLI runner."""
