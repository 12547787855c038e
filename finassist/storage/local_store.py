"""Mini README: JSON-file backed key-value store.

Structure:
    * LocalStore - dictionary of JSON values mirrored to a single file.

The store plays the part browser storage plays for the web client: every
write rewrites the whole file, reads come from memory. Corrupt files and
write failures (quota, permissions) are logged and the store keeps working
in memory so callers never crash on persistence problems. Passing
``path=None`` gives a purely in-memory store, handy for tests.
"""

from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

from ..logging_utils import get_logger

LOGGER = get_logger(__name__)


class LocalStore:
    """Persist JSON-serialisable values under string keys."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = Path(path) if path is not None else None
        self._data: Dict[str, Any] = {}
        self.persistent = self.path is not None
        if self.path is not None:
            self._data = self._read_file(self.path)
        LOGGER.debug("Local store ready at %s with %s keys", self.path or "<memory>", len(self._data))

    @staticmethod
    def _read_file(path: Path) -> Dict[str, Any]:
        """Load the backing file, falling back to an empty store when unreadable."""

        if not path.exists():
            return {}
        try:
            payload = json.loads(path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as error:
            LOGGER.error("Local store %s is unreadable, starting empty: %s", path, error)
            return {}
        if not isinstance(payload, dict):
            LOGGER.error("Local store %s does not hold an object, starting empty", path)
            return {}
        return payload

    def _flush(self) -> bool:
        if self.path is None:
            return True
        temp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            temp_path.write_text(json.dumps(self._data, ensure_ascii=False), encoding="utf-8")
            os.replace(temp_path, self.path)
        except (OSError, TypeError, ValueError) as error:
            LOGGER.error("Could not persist local store to %s, keeping data in memory: %s", self.path, error)
            self.persistent = False
            return False
        self.persistent = True
        return True

    def get(self, key: str, default: Any = None) -> Any:
        """Return a deep copy of the stored value so callers cannot mutate the store."""

        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> bool:
        """Store ``value`` and report whether it reached the backing file."""

        self._data[key] = copy.deepcopy(value)
        return self._flush()

    def remove(self, key: str) -> None:
        if key in self._data:
            del self._data[key]
            self._flush()

    def keys(self) -> Iterator[str]:
        return iter(sorted(self._data))
