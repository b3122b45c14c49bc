"""Logging setup for the ``inkwell`` logger tree.

Inkwell runs inside a host editor, so only the ``inkwell`` package logger
is configured here; the root logger belongs to the host. Records still
propagate upwards.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path

__all__ = ["PACKAGE_LOGGER", "setup_logging", "set_debug_logging", "get_log_path"]

PACKAGE_LOGGER = "inkwell"
_DEFAULT_LOG_DIR = Path.home() / ".inkwell" / "logs"
_LOG_FILE_NAME = "inkwell.log"
# chatty while a prediction request is in flight
_NOISY_LOGGERS: tuple[str, ...] = ("httpx", "httpcore", "openai")
_HANDLER_MARK = "_inkwell_handler"
_LOG_PATH: Path | None = None


def setup_logging(
    level: int = logging.INFO,
    *,
    log_dir: Path | str | None = None,
    console: bool = False,
    max_bytes: int = 512_000,
    backup_count: int = 2,
    force: bool = False,
) -> Path:
    """Attach a rotating file handler (and optionally stderr) to the ``inkwell`` logger."""

    global _LOG_PATH
    logger = logging.getLogger(PACKAGE_LOGGER)
    if _LOG_PATH is not None and not force:
        return _LOG_PATH

    _remove_own_handlers(logger)
    target_dir = _resolve_log_dir(log_dir)
    target_dir.mkdir(parents=True, exist_ok=True)
    log_path = target_dir / _LOG_FILE_NAME

    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
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
        setattr(handler, _HANDLER_MARK, True)
        logger.addHandler(handler)

    logger.setLevel(level)
    _quiet_transport_loggers(level)
    _LOG_PATH = log_path
    return log_path


def set_debug_logging(enabled: bool, *, log_dir: Path | str | None = None) -> int:
    """Switch the ``inkwell`` logger between DEBUG and INFO; returns the new level.

    Called whenever the ``debug_logging`` setting flips. The current log
    directory is kept unless ``log_dir`` is given.
    """

    level = logging.DEBUG if enabled else logging.INFO
    if log_dir is None and _LOG_PATH is not None:
        log_dir = _LOG_PATH.parent
    setup_logging(level, log_dir=log_dir, force=True)
    logging.getLogger(__name__).debug("Autocomplete logging level set to %s", logging.getLevelName(level))
    return level


def get_log_path() -> Path | None:
    """Return the currently configured log file if available."""

    return _LOG_PATH


def _remove_own_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARK, False):
            logger.removeHandler(handler)
            handler.close()


def _resolve_log_dir(log_dir: Path | str | None) -> Path:
    env_override = os.environ.get("INKWELL_LOG_DIR")
    return Path(log_dir or env_override or _DEFAULT_LOG_DIR).expanduser()


def _quiet_transport_loggers(level: int) -> None:
    quiet_level = max(logging.WARNING, level)
    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(quiet_level)
