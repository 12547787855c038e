"""Mini README: Local-first authentication.

Structure:
    * AuthResult - outcome of a login or registration attempt.
    * AuthService - login, registration, logout, idle expiry and session
      restore on top of ``DataManager`` and the security helpers.

Accounts live in the local store under ``users`` with a salted SHA-256
hash. Login checks local accounts first; only an email with no local account
is tried against the sync server.
Failed attempts feed a sliding-window lockout per email. Form problems are
returned inside ``AuthResult`` rather than raised.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..finance.data_manager import CURRENT_USER_KEY, DataManager
from ..finance.models import User, next_record_id, utc_timestamp
from ..logging_utils import get_logger
from ..security import (
    LoginThrottle,
    SecurityEventLog,
    generate_salt,
    generate_secure_random,
    hash_password,
    verify_password,
)
from ..validation import FieldRule, Validator
from .session import Session, SessionState

LOGGER = get_logger(__name__)

USERS_KEY = "users"
INVALID_CREDENTIALS = "Invalid email or password"


@dataclass
class AuthResult:
    success: bool
    message: str = ""
    user: Optional[User] = None
    errors: Dict[str, List[str]] = field(default_factory=dict)
    attempts_remaining: Optional[int] = None


def _parse_timestamp(value: Any) -> Optional[float]:
    if not isinstance(value, str) or not value:
        return None
    try:
        moment = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.timestamp()


class AuthService:
    """Coordinate credentials, lockout, the session and the current user."""

    def __init__(
        self,
        data_manager: DataManager,
        *,
        validator: Optional[Validator] = None,
        session_timeout_seconds: float = 30 * 60,
        max_attempts: int = 5,
        lockout_seconds: float = 15 * 60,
        security_log_limit: int = 100,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.data_manager = data_manager
        self.store = data_manager.store
        self.client = data_manager.client
        self.validator = validator or data_manager.validator
        self._clock = clock
        self.session = Session(session_timeout_seconds, clock)
        self.throttle = LoginThrottle(
            self.store,
            max_attempts=max_attempts,
            window_seconds=lockout_seconds,
            clock=clock,
        )
        self.events = SecurityEventLog(self.store, limit=security_log_limit)

    @classmethod
    def from_settings(cls, data_manager: DataManager, settings: Any, **kwargs: Any) -> "AuthService":
        return cls(
            data_manager,
            session_timeout_seconds=settings.session_timeout_seconds,
            max_attempts=settings.max_login_attempts,
            lockout_seconds=settings.lockout_seconds,
            security_log_limit=settings.security_log_limit,
            **kwargs,
        )

    def _now_timestamp(self) -> str:
        return utc_timestamp(datetime.fromtimestamp(self._clock(), timezone.utc))

    # ------------------------------------------------------------------ users
    def _users(self) -> List[User]:
        payload = self.store.get(USERS_KEY, []) or []
        return [User.from_dict(item) for item in payload if isinstance(item, Mapping)]

    def _save_users(self, users: List[User]) -> None:
        self.store.set(USERS_KEY, [user.as_dict() for user in users])

    def find_user(self, email: str) -> Optional[User]:
        wanted = email.strip().lower()
        for user in self._users():
            if user.email == wanted:
                return user
        return None

    # ------------------------------------------------------------------ login
    def begin_login(self) -> None:
        self.session.await_credentials()

    def login(self, email: str, password: str) -> AuthResult:
        email = (email or "").strip().lower()
        form = self.validator.validate_form(
            {"email": email, "password": password},
            {"email": self.validator.rules["email"], "password": FieldRule()},
        )
        if not form.valid:
            return AuthResult(False, "Check the highlighted fields", errors=form.errors)

        status = self.throttle.check(email)
        if status.blocked:
            self.events.record("LOGIN_BLOCKED", {"email": email})
            return AuthResult(False, status.message, attempts_remaining=0)

        local_user = self.find_user(email)
        if local_user is not None:
            user = local_user if self._verify(local_user, password) else None
        else:
            user = self._server_login(email, password)
        if user is None:
            self.throttle.record_failure(email)
            self.events.record("LOGIN_FAILED", {"email": email})
            remaining = self.throttle.check(email)
            if remaining.blocked:
                return AuthResult(False, remaining.message, attempts_remaining=0)
            return AuthResult(False, INVALID_CREDENTIALS, attempts_remaining=remaining.attempts_remaining)

        self.throttle.clear(email)
        self._sign_in(user)
        self.events.record("LOGIN_SUCCESS", {"user_id": user.id})
        LOGGER.info("User %s signed in", user.id)
        return AuthResult(True, "Signed in", user=user)

    @staticmethod
    def _verify(user: User, password: str) -> bool:
        if not user.salt or not user.password:
            return False
        return verify_password(password, user.salt, user.password)

    def _server_login(self, email: str, password: str) -> Optional[User]:
        response = self.client.login(email, password)
        if response is None or not isinstance(response.get("user"), Mapping):
            return None
        LOGGER.info("Signed in through the sync server for %s", email)
        return User.from_dict(response["user"])

    def _sign_in(self, user: User) -> None:
        user.session_id = generate_secure_random()
        user.last_activity = self._now_timestamp()
        self.data_manager.set_current_user(user)
        self.session.start(user, user.session_id, self._clock())

    # ----------------------------------------------------------- registration
    def register(self, name: str, email: str, password: str, password_confirm: str) -> AuthResult:
        payload = {
            "name": name,
            "email": (email or "").strip().lower(),
            "password": password,
            "password_confirm": password_confirm,
        }
        form = self.validator.validate_registration(payload)
        if not form.valid:
            return AuthResult(False, "Check the highlighted fields", errors=form.errors)

        email = payload["email"]
        status = self.throttle.check(email)
        if status.blocked:
            self.events.record("LOGIN_BLOCKED", {"email": email, "action": "register"})
            return AuthResult(False, status.message, attempts_remaining=0)

        users = self._users()
        if any(existing.email == email for existing in users):
            return AuthResult(False, "User with this email already exists", errors={"email": ["Email already registered"]})

        clean_name = str(form.sanitized_data["name"])
        response = self.client.register({"name": clean_name, "email": email, "password": password})
        server_id = None
        if response is not None and isinstance(response.get("user"), Mapping):
            server_id = response["user"].get("id")

        salt = generate_salt()
        now = self._now_timestamp()
        user = User(
            id=server_id if server_id is not None else next_record_id(existing.id for existing in users),
            name=clean_name,
            email=email,
            password=hash_password(password, salt),
            salt=salt,
            created=now,
            last_activity=now,
        )
        users.append(user)
        self._save_users(users)
        self.events.record("USER_REGISTERED", {"user_id": user.id})
        LOGGER.info("Registered user %s (%s)", user.id, "server" if server_id is not None else "local only")

        self._sign_in(user)
        return AuthResult(True, "Registration complete", user=user)

    # ---------------------------------------------------------------- session
    def touch(self) -> None:
        """Reset the idle clock and persist the new ``lastActivity``."""

        if not self.session.authenticated or self.session.paused:
            return
        self.session.touch()
        payload = self.store.get(CURRENT_USER_KEY)
        if isinstance(payload, Mapping):
            payload = dict(payload)
            payload["lastActivity"] = self._now_timestamp()
            self.store.set(CURRENT_USER_KEY, payload)

    def pause(self) -> None:
        self.session.pause()

    def resume(self) -> None:
        self.session.resume()
        self.touch()

    def check_expiry(self) -> bool:
        """Expire the session after the idle timeout; return whether it expired."""

        if not self.session.is_expired():
            return False
        user = self.session.user
        self.events.record("SESSION_EXPIRED", {"user_id": user.id if user else None})
        self.data_manager.set_current_user(None)
        self.session.end(SessionState.EXPIRED)
        LOGGER.info("Session expired after %.0f idle seconds", self.session.timeout_seconds)
        return True

    def logout(self) -> None:
        user = self.session.user or self.data_manager.current_user()
        self.events.record("LOGOUT", {"user_id": user.id if user else None})
        self.data_manager.set_current_user(None)
        self.session.end(SessionState.LOGGED_OUT)
        LOGGER.info("User %s signed out", user.id if user else "<none>")

    def restore_session(self) -> Optional[User]:
        """Resume the stored ``currentUser`` unless its last activity is too old."""

        user = self.data_manager.current_user()
        if user is None:
            return None
        last_activity = _parse_timestamp(user.last_activity)
        if last_activity is None or self._clock() - last_activity >= self.session.timeout_seconds:
            self.events.record("SESSION_EXPIRED", {"user_id": user.id, "restored": True})
            self.data_manager.set_current_user(None)
            self.session.end(SessionState.EXPIRED)
            return None
        self.session.start(user, user.session_id, last_activity)
        self.data_manager.load_user_data(user.id)
        LOGGER.debug("Restored session for user %s", user.id)
        return user
