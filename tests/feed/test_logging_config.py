from __future__ import annotations

import logging

from lob_feed.logging_config import setup_logging


def test_setup_logging_writes_daily_file(tmp_path):
    path = setup_logging(level="debug", component="lob_feed", subdir="BTCUSDT", base_dir=tmp_path)

    logging.getLogger("runner").debug("hello %s", "book")
    for h in logging.getLogger().handlers:
        h.flush()

    assert path.parent == tmp_path / "lob_feed" / "BTCUSDT"
    assert path.suffix == ".log"
    assert "DEBUG runner - hello book" in path.read_text(encoding="utf-8")


def test_setup_logging_console_only(tmp_path):
    assert setup_logging(level="WARNING", base_dir=tmp_path, to_file=False) is None
    assert logging.getLogger().level == logging.WARNING
    assert not (tmp_path / "lob_feed").exists()
