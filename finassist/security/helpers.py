"""Mini README: Security helpers for credentials and user input.

Structure:
    * generate_secure_random / generate_salt - hex tokens from ``secrets``.
    * hash_password / verify_password - salted SHA-256 digests.
    * sanitize_input / contains_malicious_content - pattern based scrubbing.
    * password_strength - 0-5 score with a readable label, errors and
      suggestions; the one scorer behind registration checks.
    * LoginThrottle - sliding-window lockout per email.
    * SecurityEventLog - capped audit trail kept in the local store.

These are convenience guards for a single-user client. The throttle and
the scrubbing patterns are easy to bypass and must not be treated as a
security boundary.
"""

from __future__ import annotations

import hashlib
import hmac
import math
import re
import secrets
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from ..logging_utils import get_logger

LOGGER = get_logger(__name__)

LOGIN_ATTEMPTS_KEY = "loginAttempts"
SECURITY_LOG_KEY = "securityLogs"
CRITICAL_EVENTS = frozenset({"LOGIN_FAILED", "LOGIN_BLOCKED", "SECURITY_VIOLATION"})
STRENGTH_LABELS = ["Very weak", "Weak", "Fair", "Good", "Strong", "Very strong"]

SANITIZATION_PATTERNS = {
    "xss": re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE),
    "sql": re.compile(r"\b(SELECT|INSERT|UPDATE|DELETE|DROP|CREATE|ALTER|EXEC|UNION|SCRIPT)\b", re.IGNORECASE),
    "html": re.compile(r"<[^>]*>"),
    "special": re.compile(r"[<>\"'&]"),
}
MALICIOUS_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"javascript:",
        r"data:text/html",
        r"vbscript:",
        r"onload=",
        r"onerror=",
        r"onclick=",
        r"eval\s*\(",
        r"expression\s*\(",
    )
]
COMMON_PASSWORDS = frozenset(
    {
        "password",
        "123456",
        "qwerty",
        "admin",
        "letmein",
        "welcome",
        "monkey",
        "dragon",
        "master",
        "sunshine",
    }
)


def generate_secure_random(length: int = 32) -> str:
    """Return ``length`` random bytes rendered as hex."""

    return secrets.token_hex(length)


def generate_salt(length: int = 16) -> str:
    return generate_secure_random(length)


def hash_password(password: str, salt: str) -> str:
    """SHA-256 hex digest of ``password + salt``."""

    if not password or not salt:
        raise ValueError("Password and salt are required for hashing")
    return hashlib.sha256((password + salt).encode("utf-8")).hexdigest()


def verify_password(password: str, salt: str, expected_hash: str) -> bool:
    if not password or not salt or not expected_hash:
        return False
    return hmac.compare_digest(hash_password(password, salt), expected_hash)


def contains_malicious_content(text: str) -> bool:
    return any(pattern.search(text) for pattern in MALICIOUS_PATTERNS)


def sanitize_input(value: Any, kind: str = "all") -> str:
    """Strip script tags, SQL keywords, markup or special characters.

    ``kind`` selects one pattern (``xss``, ``sql``, ``html``) or all of them.
    Input that still looks like script injection afterwards is discarded.
    """

    if not value or not isinstance(value, str):
        return ""
    sanitized = value.strip()
    patterns = [SANITIZATION_PATTERNS[kind]] if kind in ("xss", "sql", "html") else list(SANITIZATION_PATTERNS.values())
    for pattern in patterns:
        sanitized = pattern.sub("", sanitized)
    if contains_malicious_content(sanitized):
        LOGGER.warning("Discarded potentially malicious input")
        return ""
    return sanitized


@dataclass(slots=True)
class PasswordStrength:
    valid: bool
    score: int
    label: str
    errors: List[str]
    suggestions: List[str] = field(default_factory=list)


def has_sequential_chars(text: str) -> bool:
    """Detect three consecutive code points such as ``abc`` or ``123``."""

    for index in range(len(text) - 2):
        first, second, third = (ord(char) for char in text[index : index + 3])
        if second == first + 1 and third == second + 1:
            return True
    return False


def password_strength(password: str) -> PasswordStrength:
    """Score a password from 0 to 5; four or more with no errors is acceptable.

    Short and common passwords are errors. Missing character classes and
    runs such as ``abc`` only lower the score and add suggestions.
    """

    if not password or not isinstance(password, str):
        return PasswordStrength(False, 0, STRENGTH_LABELS[0], ["Password is required"])
    errors: List[str] = []
    suggestions: List[str] = []
    score = 0
    if len(password) < 8:
        errors.append("At least 8 characters")
    else:
        score += 1
        if len(password) >= 12:
            score += 1
    for pattern, message in (
        (r"[a-z]", "Add lower case letters"),
        (r"[A-Z]", "Add upper case letters"),
        (r"\d", "Add digits"),
        (r"[^a-zA-Z\d]", "Add special characters"),
    ):
        if re.search(pattern, password):
            score += 1
        else:
            suggestions.append(message)
    if password.lower() in COMMON_PASSWORDS:
        errors.append("Password is too common")
        score = 0
    if has_sequential_chars(password):
        suggestions.append("Avoid sequential characters")
    score = min(score, 5)
    return PasswordStrength(not errors and score >= 4, score, STRENGTH_LABELS[score], errors, suggestions)


@dataclass(slots=True)
class LockoutStatus:
    blocked: bool
    attempts_remaining: int = 0
    time_remaining: float = 0.0
    message: str = ""


class LoginThrottle:
    """Count failed logins per email within a sliding time window.

    Timestamps are epoch seconds persisted under ``loginAttempts`` as
    ``{email: [timestamp, ...]}``.
    """

    def __init__(
        self,
        store: Any,
        *,
        max_attempts: int = 5,
        window_seconds: float = 15 * 60,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self._clock = clock

    def _load(self) -> Dict[str, List[float]]:
        attempts = self.store.get(LOGIN_ATTEMPTS_KEY, {}) or {}
        return attempts if isinstance(attempts, dict) else {}

    def _recent(self, attempts: Dict[str, List[float]], email: str, now: float) -> List[float]:
        return [stamp for stamp in attempts.get(email, []) if now - float(stamp) < self.window_seconds]

    def check(self, email: str) -> LockoutStatus:
        """Report whether ``email`` is locked out, pruning expired attempts."""

        now = self._clock()
        attempts = self._load()
        recent = self._recent(attempts, email, now)
        if recent != attempts.get(email, []):
            if recent:
                attempts[email] = recent
            else:
                attempts.pop(email, None)
            self.store.set(LOGIN_ATTEMPTS_KEY, attempts)
        if len(recent) >= self.max_attempts:
            remaining = self.window_seconds - (now - min(recent))
            minutes = math.ceil(remaining / 60)
            return LockoutStatus(
                blocked=True,
                time_remaining=remaining,
                message=f"Too many login attempts. Try again in {minutes} minutes.",
            )
        return LockoutStatus(blocked=False, attempts_remaining=self.max_attempts - len(recent))

    def record_failure(self, email: str) -> None:
        attempts = self._load()
        attempts.setdefault(email, []).append(self._clock())
        self.store.set(LOGIN_ATTEMPTS_KEY, attempts)

    def clear(self, email: str) -> None:
        attempts = self._load()
        if attempts.pop(email, None) is not None:
            self.store.set(LOGIN_ATTEMPTS_KEY, attempts)


class SecurityEventLog:
    """Capped list of security events persisted under ``securityLogs``."""

    def __init__(self, store: Any, *, limit: int = 100) -> None:
        self.store = store
        self.limit = limit

    def record(self, event: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event": event,
            "details": dict(details or {}),
        }
        logs = list(self.store.get(SECURITY_LOG_KEY, []) or [])
        logs.append(entry)
        if len(logs) > self.limit:
            del logs[: len(logs) - self.limit]
        self.store.set(SECURITY_LOG_KEY, logs)
        if event in CRITICAL_EVENTS:
            LOGGER.warning("Security event %s: %s", event, entry["details"])
        else:
            LOGGER.debug("Security event %s", event)
        return entry

    def recent(self, limit: int = 50) -> List[Dict[str, Any]]:
        return list(self.store.get(SECURITY_LOG_KEY, []) or [])[-limit:]
