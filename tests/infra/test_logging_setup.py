from __future__ import annotations

import logging

import pytest

from whoisit.infra.logging.setup import (
    StdStreamToLogger,
    closeCommandLogger,
    createCommandLogger,
    logEvent,
    mapLogLevel,
)


def test_without_log_dir_no_file_is_written(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    logger, path = createCommandLogger("lookup", None, "r0", "INFO")
    logEvent(logger, logging.INFO, "r0", "core", "Command started")
    closeCommandLogger(logger)

    assert path is None
    assert list(tmp_path.iterdir()) == []


def test_console_lines_are_logged_without_inline_images(tmp_path):
    logger, path = createCommandLogger("lookup", str(tmp_path / "logs"), "r1", "DEBUG")
    stream = StdStreamToLogger(logger, logging.INFO, "r1", "stdout")

    stream.write("Searching for user with UId: A1...\n\n")
    stream.write("\x1b]1337;File=inline=1;width=20;preserveAspectRatio=1:QUJD\x07\n")
    stream.write("🏁 Reached top of organizational hierarchy")
    stream.flush()
    closeCommandLogger(logger)

    content = (tmp_path / "logs" / "lookup_r1.log").read_text(encoding="utf-8")
    assert path.endswith("lookup_r1.log")
    assert "runId=r1 comp=stdout msg=Searching for user with UId: A1..." in content
    assert "Reached top of organizational hierarchy" in content
    assert "1337" not in content
    assert len(content.strip().splitlines()) == 2


def test_log_level_names():
    assert mapLogLevel("warn") == logging.WARNING
    assert mapLogLevel("WARNING") == logging.WARNING
    assert mapLogLevel(" debug ") == logging.DEBUG
    with pytest.raises(ValueError):
        mapLogLevel("TRACE")
