"""Tests for structlog configuration."""

import logging
import os
import time

import structlog

from challenger.core.logging import (
    LOG_FILE_PREFIX,
    _cull_old_logs,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)


def test_configure_logging_creates_log_file(tmp_path):
    log_file = configure_logging(log_sessions_to_keep=3, logs_dir=tmp_path, debug=False)

    assert log_file.parent == tmp_path
    assert log_file.name.startswith(LOG_FILE_PREFIX)
    assert log_file.exists()


def test_configure_logging_does_not_stack_handlers(tmp_path):
    configure_logging(logs_dir=tmp_path, debug=False)
    configure_logging(logs_dir=tmp_path, debug=False)

    # one console handler plus one file handler
    assert len(logging.getLogger().handlers) == 2


def test_cull_keeps_most_recent(tmp_path):
    for i in range(5):
        path = tmp_path / f"{LOG_FILE_PREFIX}2025010{i}_000000.log"
        path.write_text("x")
        stamp = time.time() - (10 - i) * 60
        os.utime(path, (stamp, stamp))

    _cull_old_logs(tmp_path, keep=2)

    remaining = sorted(p.name for p in tmp_path.glob(f"{LOG_FILE_PREFIX}*.log"))
    assert remaining == [
        f"{LOG_FILE_PREFIX}20250103_000000.log",
        f"{LOG_FILE_PREFIX}20250104_000000.log",
    ]


def test_cull_ignores_other_files(tmp_path):
    other = tmp_path / "notes.log"
    other.write_text("keep me")

    _cull_old_logs(tmp_path, keep=0)

    assert other.exists()


def test_bind_and_clear_context():
    clear_context()
    bind_context(session_id="abc", request_id="req-1")

    context = structlog.contextvars.get_contextvars()
    assert context["session_id"] == "abc"
    assert context["request_id"] == "req-1"

    clear_context()
    assert structlog.contextvars.get_contextvars() == {}


def test_get_logger_returns_usable_logger():
    log = get_logger(__name__)
    log.info("test_event", value=1)


def test_configure_logging_applies_level(tmp_path):
    configure_logging(logs_dir=tmp_path, debug=False, level="debug")

    assert logging.getLogger().level == logging.DEBUG
    # request-per-line clients stay quiet even in debug
    assert logging.getLogger("httpx").level == logging.WARNING

    configure_logging(logs_dir=tmp_path, debug=False, level="ERROR")
    assert logging.getLogger().level == logging.ERROR
    assert logging.getLogger("httpx").level == logging.ERROR

    configure_logging(logs_dir=tmp_path, debug=False, level="INFO")
