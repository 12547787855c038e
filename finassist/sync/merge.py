"""Mini README: Reconciliation of local and server copies of user data.

Structure:
    * merge_records - last-write-wins merge of two record lists keyed by id.
    * fingerprint / has_changes - cheap change-detection gate.
    * resolve_conflicts - merge a whole collection bundle.

Records are plain mappings carrying ``id`` and an optional ISO ``updated``
timestamp. For ids on both sides the record with the lexicographically
greater ``updated`` wins; a missing timestamp counts as the epoch and ties
keep the local record. Output keeps local records first in their original
order, then appends server-only records in server order. There are no
vector clocks: if both sides edit the same id offline, one edit is dropped.

The fingerprint is a truncated base64 rendering of a digest of the
serialised bundle. It only decides whether a merge is worth running and is
not an integrity check.
"""

from __future__ import annotations

import base64
import hashlib
import json
from typing import Any, Dict, Iterable, List, Mapping, Sequence

from ..logging_utils import get_logger

LOGGER = get_logger(__name__)

EPOCH_TIMESTAMP = "1970-01-01T00:00:00.000Z"
FINGERPRINT_LENGTH = 16
RECORD_COLLECTIONS = ("transactions", "budgets", "goals")
CATEGORY_COLLECTIONS = ("incomeCategories", "expenseCategories")


def _updated(record: Mapping[str, Any]) -> str:
    return str(record.get("updated") or EPOCH_TIMESTAMP)


def _record_key(record: Mapping[str, Any]) -> str:
    # Ids may arrive as numbers from one side and digit strings from the other.
    return str(record.get("id"))


def merge_records(
    local: Sequence[Mapping[str, Any]],
    server: Sequence[Mapping[str, Any]],
) -> List[Dict[str, Any]]:
    """Merge two record lists so each id appears exactly once."""

    merged: List[Dict[str, Any]] = []
    positions: Dict[str, int] = {}

    for record in [*(local or []), *(server or [])]:
        if not isinstance(record, Mapping):
            continue
        key = _record_key(record)
        if key not in positions:
            positions[key] = len(merged)
            merged.append(dict(record))
            continue
        index = positions[key]
        if _updated(record) > _updated(merged[index]):
            merged[index] = dict(record)
    return merged


def _serialise(data: Any) -> bytes:
    return json.dumps(
        data, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str
    ).encode("utf-8")


def fingerprint(data: Any, length: int = FINGERPRINT_LENGTH) -> str:
    """Short base64 prefix of the SHA-256 digest of the canonical JSON of ``data``.

    Digesting first makes every byte of the bundle count; a raw base64 prefix
    would only ever spell the first key name.
    """

    digest = hashlib.sha256(_serialise(data)).digest()
    return base64.b64encode(digest).decode("ascii")[:length]


def has_changes(local: Any, server: Any) -> bool:
    """Return ``True`` when the two bundles' fingerprints differ."""

    return fingerprint(local) != fingerprint(server)


def resolve_conflicts(
    local: Mapping[str, Any],
    server: Mapping[str, Any],
) -> Dict[str, Any]:
    """Merge every collection of two user-data bundles."""

    resolved: Dict[str, Any] = {}
    for name in RECORD_COLLECTIONS:
        resolved[name] = merge_records(_as_list(local.get(name)), _as_list(server.get(name)))
    for name in CATEGORY_COLLECTIONS:
        resolved[name] = _union_labels(_as_list(local.get(name)), _as_list(server.get(name)))
    LOGGER.debug(
        "Resolved bundle: %s",
        {name: len(resolved[name]) for name in (*RECORD_COLLECTIONS, *CATEGORY_COLLECTIONS)},
    )
    return resolved


def _union_labels(*groups: Sequence[Any]) -> List[str]:
    """Order-preserving union of category labels, local labels first."""

    return list(dict.fromkeys(str(label) for group in groups for label in group if label))


def _as_list(value: Any) -> List[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


def merge_collections(
    current: Mapping[str, Any],
    incoming: Mapping[str, Any],
    include: Iterable[str],
) -> Dict[str, Any]:
    """Merge only the named collections of ``incoming`` into ``current``."""

    result = dict(current)
    for name in include:
        if name not in incoming:
            continue
        if name in CATEGORY_COLLECTIONS:
            result[name] = _union_labels(_as_list(current.get(name)), _as_list(incoming.get(name)))
        else:
            result[name] = merge_records(_as_list(current.get(name)), _as_list(incoming.get(name)))
    return result
