"""Mini README: Tests for hashing, sanitisation, throttling and the security log."""

from __future__ import annotations

import logging

import pytest

from finassist.security import (
    LoginThrottle,
    SecurityEventLog,
    generate_salt,
    hash_password,
    password_strength,
    sanitize_input,
    verify_password,
)
from finassist.security.helpers import LOGIN_ATTEMPTS_KEY
from finassist.storage import LocalStore


def test_hash_and_verify_password() -> None:
    salt = generate_salt()
    digest = hash_password("Secur3!Pass", salt)

    assert len(salt) == 32
    assert digest == hash_password("Secur3!Pass", salt)
    assert verify_password("Secur3!Pass", salt, digest)
    assert not verify_password("secur3!pass", salt, digest)
    assert digest != hash_password("Secur3!Pass", generate_salt())


def test_hash_requires_password_and_salt() -> None:
    with pytest.raises(ValueError):
        hash_password("", "salt")


def test_sanitize_input_strips_scripts_and_rejects_javascript_urls() -> None:
    assert sanitize_input("<script>alert(1)</script>hello") == "hello"
    assert sanitize_input("javascript:alert(1)") == ""
    assert "DROP" not in sanitize_input("DROP TABLE users", "sql")
    assert sanitize_input(None) == ""


def test_password_strength_labels() -> None:
    strong = password_strength("Str0ng!Passw0rd")
    weak = password_strength("abc")

    assert strong.valid
    assert strong.score == 5
    assert strong.label == "Very strong"
    assert not weak.valid
    assert weak.label == "Weak"


def test_throttle_blocks_after_max_attempts_and_releases(clock) -> None:
    store = LocalStore()
    clock.now = 1000.0
    throttle = LoginThrottle(store, max_attempts=3, window_seconds=60, clock=clock)

    for _ in range(3):
        throttle.record_failure("anna@example.com")
    blocked = throttle.check("anna@example.com")

    assert blocked.blocked
    assert "1 minutes" in blocked.message
    assert not throttle.check("other@example.com").blocked

    clock.advance(61)
    released = throttle.check("anna@example.com")

    assert not released.blocked
    assert released.attempts_remaining == 3
    assert store.get(LOGIN_ATTEMPTS_KEY) == {}


def test_throttle_window_slides(clock) -> None:
    throttle = LoginThrottle(LocalStore(), max_attempts=3, window_seconds=60, clock=clock)
    for moment in (0.0, 30.0, 50.0):
        clock.now = moment
        throttle.record_failure("anna@example.com")

    clock.now = 55.0
    assert throttle.check("anna@example.com").blocked

    clock.now = 61.0
    status = throttle.check("anna@example.com")
    assert not status.blocked
    assert status.attempts_remaining == 1


def test_security_log_is_capped(caplog: pytest.LogCaptureFixture) -> None:
    log = SecurityEventLog(LocalStore(), limit=3)

    with caplog.at_level(logging.WARNING, logger="finassist.security.helpers"):
        for index in range(4):
            log.record(f"EVENT_{index}")
        log.record("LOGIN_FAILED", {"email": "anna@example.com"})

    events = [entry["event"] for entry in log.recent()]
    assert events == ["EVENT_2", "EVENT_3", "LOGIN_FAILED"]
    assert "LOGIN_FAILED" in caplog.text
