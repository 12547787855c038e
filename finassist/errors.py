"""Mini README: Exception types shared across the Financial Assistant.

Structure:
    * ValidationError - user-correctable input problems with per-field messages.
    * NotAuthenticatedError - data access attempted without a current user.

Missing records raise the built-in ``KeyError`` and unsupported values the
built-in ``ValueError``, matching the rest of the package.
"""

from __future__ import annotations

from typing import Dict, List, Optional


class ValidationError(ValueError):
    """Raised when a payload fails field validation."""

    def __init__(self, message: str, errors: Optional[Dict[str, List[str]]] = None) -> None:
        self.errors: Dict[str, List[str]] = errors or {}
        details = "; ".join(
            f"{field}: {', '.join(messages)}" for field, messages in self.errors.items()
        )
        super().__init__(f"{message} ({details})" if details else message)


class NotAuthenticatedError(RuntimeError):
    """Raised when an operation requires a signed-in user."""

    def __init__(self, message: str = "No user is signed in") -> None:
        super().__init__(message)
