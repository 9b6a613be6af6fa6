"""Tests for logging setup"""

from __future__ import annotations

import logging

import pytest

from core import log_setup
from core.config import Settings


@pytest.fixture(autouse=True)
def fresh_logging(monkeypatch):
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    monkeypatch.setattr(log_setup, "_initialized", False)
    yield
    for h in list(root.handlers):
        if h not in handlers:
            root.removeHandler(h)
            h.close()
    root.setLevel(level)


def test_appends_to_log_file(tmp_path):
    log_file = tmp_path / "blob_api.log"
    log_file.write_text("previous run\n")

    logger = log_setup.init_logger(
        Settings(LOG_DIR=str(tmp_path), LOG_FILE_NAME="blob_api.log", LOG_LEVEL="INFO")
    )
    logger.info("fresh line")
    for h in logging.getLogger().handlers:
        h.flush()

    content = log_file.read_text()
    assert content.startswith("previous run\n")
    assert "fresh line" in content


def test_is_idempotent(tmp_path):
    s = Settings(LOG_DIR=str(tmp_path))
    log_setup.init_logger(s)
    count = len(logging.getLogger().handlers)
    log_setup.init_logger(s)
    assert len(logging.getLogger().handlers) == count


def test_unopenable_log_file_falls_back_to_console(tmp_path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("")
    before = len(logging.getLogger().handlers)

    logger = log_setup.init_logger(Settings(LOG_DIR=str(blocker)))

    assert logger.name == "blob_api"
    # Console handler only
    assert len(logging.getLogger().handlers) == before + 1
