from __future__ import annotations

import importlib


def test_invalid_env_does_not_crash(monkeypatch):
    monkeypatch.setenv("WS_PING_INTERVAL_S", "not-a-number")
    monkeypatch.setenv("WS_OPEN_TIMEOUT_S", "nope")
    monkeypatch.setenv("ORDERBOOK_DEPTH", "bad")
    monkeypatch.setenv("SYMBOL", "   ")

    import lob_feed.settings as settings_mod

    importlib.reload(settings_mod)
    try:
        assert settings_mod.WS_PING_INTERVAL_S == 20
        assert settings_mod.WS_OPEN_TIMEOUT_S == 10.0
        assert settings_mod.ORDERBOOK_DEPTH == 1
        assert settings_mod.SYMBOL == "BTCUSDT"
    finally:
        monkeypatch.undo()
        importlib.reload(settings_mod)


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("SYMBOL", "ETHUSDT")
    monkeypatch.setenv("BYBIT_CATEGORY", "linear")
    monkeypatch.setenv("BYBIT_TESTNET", "yes")
    monkeypatch.setenv("REQUIRE_SNAPSHOT", "0")
    monkeypatch.setenv("DISPLAY_LEVELS", "5")

    import lob_feed.settings as settings_mod

    importlib.reload(settings_mod)
    try:
        assert settings_mod.SYMBOL == "ETHUSDT"
        assert settings_mod.BYBIT_CATEGORY == "linear"
        assert settings_mod.BYBIT_TESTNET is True
        assert settings_mod.REQUIRE_SNAPSHOT is False
        assert settings_mod.DISPLAY_LEVELS == 5
    finally:
        monkeypatch.undo()
        importlib.reload(settings_mod)
