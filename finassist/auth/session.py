"""Mini README: Session lifecycle with an idle timeout.

Structure:
    * SessionState - anonymous, pending-credentials, authenticated, expired
      or logged-out.
    * Session - tracks the signed-in user and the last activity instant.

The idle clock only runs while the session is visible. ``pause`` stops it
(the page went to the background) and ``resume`` restarts it from zero, so
time spent hidden never counts toward expiry.
"""

from __future__ import annotations

import time
from enum import Enum
from typing import Callable, Optional

from ..finance.models import User


class SessionState(str, Enum):
    ANONYMOUS = "anonymous"
    PENDING_CREDENTIALS = "pending-credentials"
    AUTHENTICATED = "authenticated"
    EXPIRED = "expired"
    LOGGED_OUT = "logged-out"


class Session:
    """Mutable session record driven by ``AuthService``."""

    def __init__(self, timeout_seconds: float = 30 * 60, clock: Callable[[], float] = time.time) -> None:
        self.timeout_seconds = timeout_seconds
        self._clock = clock
        self.state = SessionState.ANONYMOUS
        self.user: Optional[User] = None
        self.session_id: Optional[str] = None
        self.last_activity: Optional[float] = None
        self.paused = False

    @property
    def authenticated(self) -> bool:
        return self.state is SessionState.AUTHENTICATED

    def await_credentials(self) -> None:
        self.state = SessionState.PENDING_CREDENTIALS

    def start(self, user: User, session_id: Optional[str], last_activity: Optional[float] = None) -> None:
        self.user = user
        self.session_id = session_id
        self.last_activity = self._clock() if last_activity is None else last_activity
        self.paused = False
        self.state = SessionState.AUTHENTICATED

    def touch(self) -> None:
        """Record user activity, resetting the idle clock."""

        if self.authenticated and not self.paused:
            self.last_activity = self._clock()

    def pause(self) -> None:
        self.paused = True

    def resume(self) -> None:
        self.paused = False
        if self.authenticated:
            self.last_activity = self._clock()

    def idle_seconds(self) -> float:
        if not self.authenticated or self.paused or self.last_activity is None:
            return 0.0
        return max(0.0, self._clock() - self.last_activity)

    def is_expired(self) -> bool:
        return self.authenticated and not self.paused and self.idle_seconds() >= self.timeout_seconds

    def end(self, state: SessionState) -> None:
        self.user = None
        self.session_id = None
        self.last_activity = None
        self.paused = False
        self.state = state
