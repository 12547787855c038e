"""Mini README: Domain records for the personal-finance tracker.

Structure:
    * TransactionType - enum representing income versus expense entries.
    * Transaction, Budget, Goal, User - dataclasses mirroring the stored JSON.
    * utc_timestamp / coerce_amount / parse_date / next_record_id - helpers
      shared by the data manager and the analytics functions.

Records are parsed defensively: malformed numbers become 0, unparseable
dates become ``None`` and unknown transaction types are kept as ``None`` so
that garbage in storage skews metrics instead of raising. Input is policed
by the validator before it ever reaches these classes.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional, Union

RecordId = Union[int, str]


class TransactionType(str, Enum):
    """Enumerate the supported transaction categories."""

    INCOME = "income"
    EXPENSE = "expense"

    @classmethod
    def from_str(cls, value: str) -> "TransactionType":
        """Coerce arbitrary casing into a valid transaction type."""

        try:
            normalised = value.strip().lower()
            return cls(normalised)
        except (ValueError, AttributeError) as error:
            raise ValueError(f"Unsupported transaction type: {value}") from error

    @classmethod
    def coerce(cls, value: object) -> Optional["TransactionType"]:
        """Like ``from_str`` but returns ``None`` for unknown values."""

        if isinstance(value, cls):
            return value
        try:
            return cls.from_str(str(value))
        except ValueError:
            return None


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix.

    The fixed width keeps timestamps comparable as plain strings.
    """

    moment = now or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def coerce_amount(value: object) -> float:
    """Return ``value`` as a finite float, treating anything unusable as 0."""

    if isinstance(value, bool):
        return 0.0
    try:
        amount = float(str(value).replace(",", ".")) if isinstance(value, str) else float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
    return amount if math.isfinite(amount) else 0.0


def parse_date(value: object) -> Optional[date]:
    """Parse ISO strings or date objects, returning ``None`` when impossible."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value:
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            return None
    return None


def _coerce_id(value: object) -> RecordId:
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, int):
        return value
    text = str(value)
    return int(text) if text.isdigit() else text


def next_record_id(existing: Iterable[object], now_ms: Optional[int] = None) -> int:
    """Millisecond-clock identifier bumped past any integer id already in use."""

    candidate = now_ms if now_ms is not None else int(time.time() * 1000)
    numeric = [value for value in existing if isinstance(value, int) and not isinstance(value, bool)]
    if numeric and candidate <= max(numeric):
        candidate = max(numeric) + 1
    return candidate


@dataclass(slots=True)
class Transaction:
    """Represent a ledger entry."""

    id: RecordId
    type: Optional[TransactionType]
    category: str
    amount: float
    date: Optional[date]
    description: str = ""
    created: str = ""
    updated: str = ""

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Transaction":
        return cls(
            id=_coerce_id(payload.get("id", "")),
            type=TransactionType.coerce(payload.get("type")),
            category=str(payload.get("category") or ""),
            amount=coerce_amount(payload.get("amount")),
            date=parse_date(payload.get("date")),
            description=str(payload.get("description") or ""),
            created=str(payload.get("created") or ""),
            updated=str(payload.get("updated") or ""),
        )

    def as_dict(self) -> Dict[str, object]:
        """Export the transaction with serialisable values."""

        return {
            "id": self.id,
            "type": self.type.value if self.type else None,
            "category": self.category,
            "amount": self.amount,
            "date": self.date.isoformat() if self.date else None,
            "description": self.description,
            "created": self.created,
            "updated": self.updated,
        }


@dataclass(slots=True)
class Budget:
    """Spending limit for one expense category."""

    id: RecordId
    category: str
    limit: float
    created: str = ""
    updated: str = ""

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Budget":
        return cls(
            id=_coerce_id(payload.get("id", "")),
            category=str(payload.get("category") or ""),
            limit=coerce_amount(payload.get("limit")),
            created=str(payload.get("created") or ""),
            updated=str(payload.get("updated") or ""),
        )

    def as_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "category": self.category,
            "limit": self.limit,
            "created": self.created,
            "updated": self.updated,
        }


@dataclass(slots=True)
class Goal:
    """Savings target with an optional deadline."""

    id: RecordId
    name: str
    target: float
    saved: float = 0.0
    deadline: Optional[date] = None
    created: str = ""
    updated: str = ""

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Goal":
        return cls(
            id=_coerce_id(payload.get("id", "")),
            name=str(payload.get("name") or ""),
            target=coerce_amount(payload.get("target")),
            saved=coerce_amount(payload.get("saved")),
            deadline=parse_date(payload.get("deadline")),
            created=str(payload.get("created") or ""),
            updated=str(payload.get("updated") or ""),
        )

    def as_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "target": self.target,
            "saved": self.saved,
            "deadline": self.deadline.isoformat() if self.deadline else None,
            "created": self.created,
            "updated": self.updated,
        }


@dataclass(slots=True)
class User:
    """Account record; the unit every financial collection is namespaced by."""

    id: RecordId
    name: str
    email: str
    password: str = ""
    salt: str = ""
    created: str = ""
    last_activity: str = ""
    is_active: bool = True
    email_verified: bool = False
    session_id: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "User":
        return cls(
            id=_coerce_id(payload.get("id", "")),
            name=str(payload.get("name") or ""),
            email=str(payload.get("email") or "").lower(),
            password=str(payload.get("password") or ""),
            salt=str(payload.get("salt") or ""),
            created=str(payload.get("created") or ""),
            last_activity=str(payload.get("lastActivity") or ""),
            is_active=bool(payload.get("isActive", True)),
            email_verified=bool(payload.get("emailVerified", False)),
            session_id=payload.get("sessionId"),
        )

    def as_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "password": self.password,
            "salt": self.salt,
            "created": self.created,
            "lastActivity": self.last_activity,
            "isActive": self.is_active,
            "emailVerified": self.email_verified,
            "sessionId": self.session_id,
        }

    def public_dict(self) -> Dict[str, object]:
        """Export without credential material."""

        payload = self.as_dict()
        payload.pop("password")
        payload.pop("salt")
        return payload
