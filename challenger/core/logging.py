"""
structlog setup for the challenger service.

Every process writes to stderr and to its own file under settings.logs_dir
(challenger_YYYYMMDD_HHMMSS.log). Only the newest log_sessions_to_keep files
survive a restart. Debug mode renders colored key=value lines; otherwise each
event is one JSON object. Request and session ids travel through contextvars
(see bind_context) and are merged into every event.
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import structlog
from structlog.typing import Processor

from challenger.core.config import settings

LOG_FILE_PREFIX = "challenger_"

# Chatty third-party loggers held at WARNING
QUIET_LOGGERS = ("httpx", "httpcore")


def _cull_old_logs(logs_dir: Path, keep: int) -> None:
    """Remove challenger log files beyond the newest `keep` (by mtime)."""
    newest_first = sorted(
        logs_dir.glob(f"{LOG_FILE_PREFIX}*.log"),
        key=lambda p: p.stat().st_mtime,
        reverse=True,
    )

    for stale in newest_first[max(keep, 0) :]:
        try:
            os.remove(stale)
        except OSError as e:
            structlog.get_logger(__name__).warning(
                "log_cull_failed", file=str(stale), error=str(e)
            )


def _renderers(debug: bool) -> List[Processor]:
    if debug:
        return [structlog.dev.ConsoleRenderer(colors=True)]
    return [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]


def _install_handlers(level: int, log_file: Path) -> None:
    root = logging.getLogger()
    # reconfiguring (tests, uvicorn reload) replaces handlers instead of stacking
    for handler in list(root.handlers):
        handler.close()
        root.removeHandler(handler)

    plain = logging.Formatter("%(message)s")
    for handler in (logging.StreamHandler(), logging.FileHandler(log_file, mode="w")):
        handler.setFormatter(plain)
        root.addHandler(handler)
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def configure_logging(
    log_sessions_to_keep: Optional[int] = None,
    logs_dir: Optional[Path] = None,
    debug: Optional[bool] = None,
    level: Optional[str] = None,
) -> Path:
    """Set up structlog and the stdlib handlers it writes through.

    Runs once at import of challenger.main; calling it again is safe and
    starts a fresh log file. Arguments left as None come from settings.

    Returns:
        The log file opened for this process
    """
    keep = settings.log_sessions_to_keep if log_sessions_to_keep is None else log_sessions_to_keep
    logs_dir = Path(settings.logs_dir if logs_dir is None else logs_dir)
    debug = settings.debug if debug is None else debug
    numeric_level = logging.getLevelName((level or settings.log_level).upper())

    logs_dir.mkdir(parents=True, exist_ok=True)
    # leave room for the file about to be created
    _cull_old_logs(logs_dir, keep=keep - 1)
    log_file = logs_dir / f"{LOG_FILE_PREFIX}{datetime.now():%Y%m%d_%H%M%S}.log"

    _install_handlers(numeric_level, log_file)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.ExtraAdder(),
            *_renderers(debug),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    return log_file


def get_logger(name: str) -> structlog.BoundLogger:
    """Module logger; events are snake_case with keyword fields."""
    return structlog.get_logger(name)


def bind_context(**kwargs) -> None:
    """Attach fields (request_id, session_id) to every event in this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Drop all bound fields; the request middleware calls this per request."""
    structlog.contextvars.clear_contextvars()
