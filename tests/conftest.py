"""Mini README: Shared fixtures for the Financial Assistant test-suite.

Structure:
    * FakeServerClient - in-memory stand-in for ``ServerClient``.
    * FakeClock - controllable epoch-seconds clock.
    * store / fake_client / manager fixtures - a signed-in ``DataManager``
      evaluated on a fixed date.
"""

from __future__ import annotations

import copy
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

import pytest

from finassist.finance.data_manager import DataManager
from finassist.finance.models import User
from finassist.storage import LocalStore

TODAY = date(2024, 5, 15)
NOW = datetime(2024, 5, 15, 12, 0, tzinfo=timezone.utc)


class FakeServerClient:
    """Record pushes and serve bundles from a dictionary."""

    def __init__(self, online: bool = True) -> None:
        self.online = online
        self.data: Dict[str, Dict[str, Any]] = {}
        self.pushes: List[str] = []
        self.login_calls = 0
        self.login_response: Optional[Dict[str, Any]] = None
        self.register_response: Optional[Dict[str, Any]] = None

    def login(self, email: str, password: str) -> Optional[Dict[str, Any]]:
        self.login_calls += 1
        return self.login_response

    def register(self, user: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return self.register_response

    def fetch_user_data(self, user_id: Any) -> Optional[Dict[str, Any]]:
        if not self.online or str(user_id) not in self.data:
            return None
        return {"success": True, **copy.deepcopy(self.data[str(user_id)])}

    def push_user_data(self, user_id: Any, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        if not self.online:
            return None
        self.pushes.append(str(user_id))
        self.data[str(user_id)] = copy.deepcopy(dict(data))
        return {"success": True}


class FakeClock:
    def __init__(self, now: float = NOW.timestamp()) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def store() -> LocalStore:
    return LocalStore()


@pytest.fixture
def fake_client() -> FakeServerClient:
    return FakeServerClient()


@pytest.fixture
def anonymous_manager(store: LocalStore, fake_client: FakeServerClient) -> DataManager:
    return DataManager(store, client=fake_client, clock=lambda: NOW, today=lambda: TODAY)


@pytest.fixture
def manager(anonymous_manager: DataManager) -> DataManager:
    anonymous_manager.set_current_user(User(id=1, name="Анна", email="anna@example.com"))
    return anonymous_manager


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
