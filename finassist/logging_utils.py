"""Mini README: Application-wide logging helpers for the Financial Assistant.

Structure:
    * get_logger - factory that configures structured logging for modules.
    * configure_root_logger - optional helper to adjust global logging level.
    * StorageLogHandler - mirrors log records into a capped list kept in the
      local key-value store (the ``financeAppLogs`` history).

Usage:
    Modules import ``get_logger`` to create contextual loggers that include
    module names and debugging friendly formatting. The helpers ensure that
    logging configuration is performed exactly once, preventing duplicate
    handlers when modules are reloaded in development.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

_LOGGER_INITIALISED = False

APP_LOG_KEY = "financeAppLogs"


def configure_root_logger(level: Union[int, str] = logging.INFO) -> None:
    """Configure the root logger with a rich, debugging friendly formatter."""

    global _LOGGER_INITIALISED
    if _LOGGER_INITIALISED:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(
            "[%(asctime)s] [%(levelname)s] %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(handler)
    _LOGGER_INITIALISED = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a module-specific logger ensuring baseline configuration."""

    configure_root_logger()
    return logging.getLogger(name)


class StorageLogHandler(logging.Handler):
    """Append log records to a capped list persisted in a key-value store.

    The store only needs ``get(key, default)`` and ``set(key, value)`` so the
    handler can be attached before the storage package is imported.
    """

    def __init__(
        self,
        store: Any,
        *,
        key: str = APP_LOG_KEY,
        limit: int = 1000,
        level: int = logging.INFO,
    ) -> None:
        super().__init__(level=level)
        self.store = store
        self.key = key
        self.limit = limit
        self._emitting = False

    def emit(self, record: logging.LogRecord) -> None:
        # Store writes may log their own failures; do not recurse into them.
        if self._emitting:
            return
        self._emitting = True
        try:
            entry: Dict[str, Any] = {
                "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
                "level": record.levelname,
                "logger": record.name,
                "message": record.getMessage(),
            }
            history: List[Dict[str, Any]] = list(self.store.get(self.key, []) or [])
            history.append(entry)
            if len(history) > self.limit:
                del history[: len(history) - self.limit]
            self.store.set(self.key, history)
        except Exception:  # pragma: no cover - logging must never raise
            self.handleError(record)
        finally:
            self._emitting = False

    def history(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Return the persisted entries, newest last."""

        entries = list(self.store.get(self.key, []) or [])
        return entries[-limit:] if limit else entries
