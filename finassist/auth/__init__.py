"""Mini README: Authentication and session management."""

from .service import USERS_KEY, AuthResult, AuthService
from .session import Session, SessionState

__all__ = ["AuthResult", "AuthService", "Session", "SessionState", "USERS_KEY"]
