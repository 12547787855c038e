"""Mini README: FastAPI sync server for the Financial Assistant.

Structure:
    * Request models - pydantic bodies for registration, login and bundles.
    * SyncRepository - accounts and per-user bundles kept in a LocalStore.
    * create_application - application factory wiring the ``/api`` routes.

The routes mirror what ``ServerClient`` consumes: every response carries a
``success`` flag, failures use 4xx status codes so the client falls back to
local storage. A read-only dashboard endpoint exposes the derived metrics of
a stored bundle.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..analytics import build_dashboard
from ..configuration import FinassistSettings, get_settings
from ..finance.data_manager import UserData, user_key
from ..finance.models import User, next_record_id, utc_timestamp
from ..logging_utils import get_logger
from ..security import generate_salt, hash_password, verify_password
from ..storage import LocalStore

LOGGER = get_logger(__name__)

SERVER_STORE_FILE = "server_store.json"
USERS_KEY = "users"


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    email: str = Field(..., min_length=3, max_length=254)
    password: str = Field(..., min_length=1)


class LoginRequest(BaseModel):
    email: str
    password: str


class UserDataPayload(BaseModel):
    transactions: List[Dict[str, Any]] = Field(default_factory=list)
    incomeCategories: Optional[List[str]] = None
    expenseCategories: Optional[List[str]] = None
    budgets: List[Dict[str, Any]] = Field(default_factory=list)
    goals: List[Dict[str, Any]] = Field(default_factory=list)


class SyncRepository:
    """Server-side accounts and bundles."""

    def __init__(self, store: LocalStore) -> None:
        self.store = store

    def users(self) -> List[User]:
        return [User.from_dict(item) for item in self.store.get(USERS_KEY, []) or []]

    def get_user(self, user_id: str) -> User:
        for user in self.users():
            if str(user.id) == str(user_id):
                return user
        raise KeyError(f"User {user_id} not found")

    def register(self, name: str, email: str, password: str) -> User:
        users = self.users()
        email = email.strip().lower()
        if any(user.email == email for user in users):
            raise ValueError("User with this email already exists")
        salt = generate_salt()
        now = utc_timestamp()
        user = User(
            id=next_record_id(user.id for user in users),
            name=name.strip(),
            email=email,
            password=hash_password(password, salt),
            salt=salt,
            created=now,
            last_activity=now,
        )
        users.append(user)
        self.store.set(USERS_KEY, [item.as_dict() for item in users])
        return user

    def authenticate(self, email: str, password: str) -> Optional[User]:
        email = email.strip().lower()
        for user in self.users():
            if user.email == email and user.salt and verify_password(password, user.salt, user.password):
                return user
        return None

    def load(self, user_id: str) -> UserData:
        user = self.get_user(user_id)
        return UserData.from_dict(self.store.get(user_key(user.id)))

    def save(self, user_id: str, payload: Dict[str, Any]) -> UserData:
        user = self.get_user(user_id)
        data = UserData.from_dict(payload)
        self.store.set(user_key(user.id), data.as_dict())
        return data


def create_application(
    settings: Optional[FinassistSettings] = None,
    store: Optional[LocalStore] = None,
) -> FastAPI:
    """Create the FastAPI application with the sync routes."""

    settings = settings or get_settings()
    app = FastAPI(title="Financial Assistant Sync Server", version="0.1.0")
    repository = SyncRepository(store or LocalStore(settings.data_directory / SERVER_STORE_FILE))

    @app.post("/api/register")
    async def register(payload: RegisterRequest) -> JSONResponse:
        """Create an account and return its public record."""

        try:
            user = repository.register(payload.name, payload.email, payload.password)
        except ValueError as error:
            return JSONResponse({"success": False, "message": str(error)}, status_code=409)
        LOGGER.info("Registered server account %s", user.id)
        return JSONResponse({"success": True, "user": user.public_dict()}, status_code=201)

    @app.post("/api/login")
    async def login(payload: LoginRequest) -> JSONResponse:
        user = repository.authenticate(payload.email, payload.password)
        if user is None:
            LOGGER.info("Rejected server login for %s", payload.email)
            return JSONResponse({"success": False, "message": "Invalid email or password"}, status_code=401)
        return JSONResponse({"success": True, "user": user.public_dict()})

    @app.get("/api/user/{user_id}/data")
    async def get_user_data(user_id: str) -> JSONResponse:
        try:
            data = repository.load(user_id)
        except KeyError as error:
            raise HTTPException(status_code=404, detail=str(error)) from error
        return JSONResponse({"success": True, **data.as_dict()})

    @app.post("/api/user/{user_id}/data")
    async def save_user_data(user_id: str, payload: UserDataPayload) -> JSONResponse:
        """Replace the stored bundle with the posted one."""

        try:
            data = repository.save(user_id, payload.model_dump(exclude_none=True))
        except KeyError as error:
            raise HTTPException(status_code=404, detail=str(error)) from error
        LOGGER.debug("Stored bundle for user %s (%s transactions)", user_id, len(data.transactions))
        return JSONResponse({"success": True})

    @app.get("/api/user/{user_id}/dashboard")
    async def dashboard(user_id: str, today: Optional[date] = None) -> JSONResponse:
        """Return the derived dashboard figures for the stored bundle."""

        try:
            data = repository.load(user_id)
        except KeyError as error:
            raise HTTPException(status_code=404, detail=str(error)) from error
        snapshot = build_dashboard(
            data.transactions,
            data.categories,
            data.budgets,
            data.goals,
            today=today,
        )
        return JSONResponse({"success": True, "dashboard": snapshot.as_dict()})

    return app
