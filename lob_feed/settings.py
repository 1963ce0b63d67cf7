from __future__ import annotations

import os


def _env_str(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "y")


SYMBOL = _env_str("SYMBOL", "BTCUSDT")
BYBIT_CATEGORY = _env_str("BYBIT_CATEGORY", "spot")
BYBIT_TESTNET = _env_bool("BYBIT_TESTNET", False)
ORDERBOOK_DEPTH = _env_int("ORDERBOOK_DEPTH", 1)

# Reject deltas that arrive before the first snapshot
REQUIRE_SNAPSHOT = _env_bool("REQUIRE_SNAPSHOT", True)
DISPLAY_LEVELS = _env_int("DISPLAY_LEVELS", 1)

# WS keepalive; Bybit drops idle connections after ~10 minutes without a ping
WS_PING_INTERVAL_S = _env_int("WS_PING_INTERVAL_S", 20)
WS_OPEN_TIMEOUT_S = _env_float("WS_OPEN_TIMEOUT_S", 10.0)
WS_RECV_POLL_TIMEOUT_S = _env_float("WS_RECV_POLL_TIMEOUT_S", 5.0)

# TLS verification should remain enabled by default.
INSECURE_TLS = _env_bool("INSECURE_TLS", False)

LOG_LEVEL = _env_str("LOG_LEVEL", "INFO")
LOG_DIR = _env_str("LOG_DIR", "logs")
LOG_TZ = _env_str("LOG_TZ", "UTC")
