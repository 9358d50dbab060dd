"""Logging setup for applications embedding mention inputs.

Library modules only ever call ``logging.getLogger(__name__)``; handlers are
installed by the host (or the demo launcher) through :func:`setup_logging`.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path

__all__ = ["LOG_FORMAT", "setup_logging", "get_logger", "get_log_path"]

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_NAME = "mentionkit.log"

# Qt and the event loop bridge are chatty at DEBUG
_NOISY_LOGGERS: tuple[str, ...] = ("asyncio", "qasync", "PySide6")
_state: dict[str, Path | None] = {"log_path": None}


def setup_logging(
    level: int = logging.INFO,
    *,
    log_dir: Path | str | None = None,
    console: bool = True,
    max_bytes: int = 1_000_000,
    backup_count: int = 3,
    force: bool = False,
) -> Path:
    """Send root logging to a rotating ``mentionkit.log`` and, optionally, stderr.

    Repeated calls are no-ops returning the active log path unless ``force``
    is set, which replaces the handlers (used to switch debug logging on).
    """

    active = _state["log_path"]
    if active is not None and not force:
        return active

    log_path = _resolve_log_dir(log_dir) / LOG_FILE_NAME
    log_path.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=level,
        handlers=_build_handlers(log_path, level, console, max_bytes, backup_count),
        force=True,
    )
    logging.captureWarnings(True)

    quiet_level = max(level, logging.WARNING)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)

    _state["log_path"] = log_path
    return log_path


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def get_log_path() -> Path | None:
    """Return the active log file, or ``None`` before :func:`setup_logging`."""

    return _state["log_path"]


def _build_handlers(
    log_path: Path,
    level: int,
    console: bool,
    max_bytes: int,
    backup_count: int,
) -> list[logging.Handler]:
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    handlers: list[logging.Handler] = [
        logging.handlers.RotatingFileHandler(
            log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
    ]
    if console:
        handlers.append(logging.StreamHandler())
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    return handlers


def _resolve_log_dir(log_dir: Path | str | None) -> Path:
    configured = log_dir or os.environ.get("MENTIONKIT_LOG_DIR")
    if configured:
        return Path(configured).expanduser()
    return Path.home() / ".mentionkit" / "logs"
