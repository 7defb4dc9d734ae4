"""Structured event logging for evmabi.

Events are written as ``<timestamp> | [CATEGORY] {json}`` lines to a
rotating file under the state directory (``~/.evmabi/logs/evmabi.log``).
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

from .config import load_settings

__all__ = ["EventLogger", "configure_logging", "get_logger", "log_event", "reset_logger"]

LOGGER_NAME = "evmabi.events"


class EventLogger:
    """Emit one JSON line per user-visible action (ABI loads, CLI commands)."""

    def __init__(self, path: Optional[Path] = None, *, console: bool = False) -> None:
        self.path = path or load_settings().log_file
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._logger = logging.getLogger(LOGGER_NAME)
        if not self._logger.handlers:
            self._logger.setLevel(logging.INFO)
            self._logger.propagate = False
            formatter = logging.Formatter("%(message)s")

            file_handler = RotatingFileHandler(
                self.path,
                maxBytes=2_000_000,
                backupCount=5,
                encoding="utf-8",
            )
            file_handler.setFormatter(formatter)
            self._logger.addHandler(file_handler)

            if console:
                console_handler = logging.StreamHandler()
                console_handler.setFormatter(formatter)
                self._logger.addHandler(console_handler)

    def log(self, category: str, action: str, status: str = "success", **fields: Any) -> None:
        """Record an event.

        Parameters
        ----------
        category:
            Logical subsystem (e.g. ``"ABI"`` or ``"CLI"``).
        action:
            Short verb describing what happened.
        status:
            ``"success"`` or ``"failure"``.
        **fields:
            Additional context: paths, selectors, counts.
        """

        timestamp = datetime.now(tz=timezone.utc).replace(microsecond=0).isoformat()
        payload: Dict[str, Any] = {"action": action, "status": status, **fields}
        serialized = json.dumps(payload, sort_keys=True, default=str)
        self._logger.info(f"{timestamp} | [{category.upper()}] {serialized}")


_shared_logger: Optional[EventLogger] = None


def get_logger(*, console: bool = False) -> EventLogger:
    global _shared_logger
    if _shared_logger is None:
        _shared_logger = EventLogger(console=console)
    return _shared_logger


def log_event(category: str, action: str, status: str = "success", **fields: Any) -> None:
    get_logger().log(category, action, status, **fields)


def reset_logger() -> None:
    """Detach and close handlers so the next event reopens the log under the current state dir."""

    global _shared_logger
    _shared_logger = None
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def configure_logging(level: str = "INFO") -> None:
    """Route the library's module loggers (``evmabi.*``) to stderr at ``level``."""

    logger = logging.getLogger("evmabi")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    if not any(isinstance(handler, logging.StreamHandler) for handler in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        logger.addHandler(handler)
