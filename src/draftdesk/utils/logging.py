"""Logging setup for the draftdesk client.

Two rotating files are written under the log directory:

* ``draftdesk.log`` - everything at the configured level.
* ``notices.log`` - only the user-facing notices routed through the
  ``draftdesk.notices`` logger, so the notification history can be read
  without the debug noise around it.

The console handler writes to stderr and stays at WARNING unless debug
logging is on; stdout is reserved for command output.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path

__all__ = ["NOTICES_LOGGER", "setup_logging", "get_logger", "get_log_path", "resolve_level"]

NOTICES_LOGGER = "draftdesk.notices"

_DEFAULT_LOG_DIR = Path.home() / ".draftdesk" / "logs"
_NOISY_LOGGERS: tuple[str, ...] = ("asyncio", "httpx", "httpcore")
_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_CONFIGURED = False
_LOG_PATH: Path | None = None


def setup_logging(
    level: int | None = None,
    *,
    log_dir: Path | str | None = None,
    console: bool = True,
    max_bytes: int = 1_000_000,
    backup_count: int = 3,
    force: bool = False,
) -> Path:
    """Configure root logging and return the path of the main log file.

    ``level`` defaults to ``DRAFTDESK_LOG_LEVEL`` (a level name) or INFO.
    Repeated calls are no-ops unless ``force`` is set.
    """

    global _CONFIGURED, _LOG_PATH
    if _CONFIGURED and not force and _LOG_PATH is not None:
        return _LOG_PATH

    if level is None:
        level = resolve_level(os.environ.get("DRAFTDESK_LOG_LEVEL"))

    target_dir = _resolve_log_dir(log_dir)
    target_dir.mkdir(parents=True, exist_ok=True)
    log_path = target_dir / "draftdesk.log"
    formatter = logging.Formatter(fmt=_FORMAT, datefmt=_DATE_FORMAT)

    def _rotating(path: Path) -> logging.Handler:
        handler = logging.handlers.RotatingFileHandler(
            path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
        handler.setFormatter(formatter)
        return handler

    main_handler = _rotating(log_path)
    main_handler.setLevel(level)
    handlers: list[logging.Handler] = [main_handler]

    notices_handler = _rotating(target_dir / "notices.log")
    notices_handler.addFilter(logging.Filter(NOTICES_LOGGER))
    handlers.append(notices_handler)

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level if level <= logging.DEBUG else max(level, logging.WARNING))
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    logging.basicConfig(level=level, handlers=handlers, force=True)
    logging.captureWarnings(True)
    _quiet_transport_loggers(level)

    _CONFIGURED = True
    _LOG_PATH = log_path
    return log_path


def resolve_level(name: str | None, default: int = logging.INFO) -> int:
    """Map a level name such as ``"debug"`` to its numeric value."""

    if not name:
        return default
    value = logging.getLevelName(name.strip().upper())
    return value if isinstance(value, int) else default


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def get_log_path() -> Path | None:
    return _LOG_PATH


def _resolve_log_dir(log_dir: Path | str | None) -> Path:
    env_override = os.environ.get("DRAFTDESK_LOG_DIR")
    return Path(log_dir or env_override or _DEFAULT_LOG_DIR).expanduser()


def _quiet_transport_loggers(root_level: int) -> None:
    # httpx logs every request at INFO.
    quiet_level = max(root_level, logging.WARNING)
    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(quiet_level)
