"""Mini README: Centralised configuration models and helpers for the Financial Assistant.

Structure:
    * FinassistSettings - Pydantic model describing runtime configuration.
    * get_settings - cached accessor for environment-aware settings.

Usage:
    Import ``get_settings`` to read environment variables (``FINASSIST_``
    prefix or a ``.env`` file), point the local store at a directory, enable
    the optional sync server, and tune session and lockout windows. The
    configuration is cached so the cost of validation is incurred only once
    per process.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, validator
from pydantic_settings import BaseSettings


class FinassistSettings(BaseSettings):
    """Runtime configuration for the Financial Assistant."""

    environment: str = Field(
        "development",
        description="Environment label controlling debug toggles and logging levels.",
    )
    data_directory: Path = Field(
        Path("data"),
        description="Directory holding the local key-value store.",
    )
    store_file: str = Field(
        "local_storage.json",
        description="File name of the local store inside ``data_directory``.",
    )
    server_url: Optional[str] = Field(
        None,
        description=(
            "Base URL of the sync server exposing the /api routes."
            " Leave unset to run fully offline."
        ),
    )
    request_timeout_seconds: float = Field(10.0, gt=0)
    session_timeout_minutes: int = Field(
        30,
        description="Idle minutes after which an authenticated session expires.",
        ge=1,
    )
    max_login_attempts: int = Field(5, ge=1)
    lockout_minutes: int = Field(
        15,
        description="Sliding window during which failed logins are counted.",
        ge=1,
    )
    sync_interval_seconds: int = Field(60, ge=1)
    log_level: str = Field("INFO")
    log_history_limit: int = Field(1000, ge=1)
    security_log_limit: int = Field(100, ge=1)
    interface_host: str = Field(
        "0.0.0.0",
        description="Network interface for the sync server to bind to.",
    )
    interface_port: int = Field(
        8000,
        description="Default port the sync server exposes.",
        ge=1,
        le=65535,
    )

    class Config:
        env_prefix = "FINASSIST_"
        env_file = ".env"
        case_sensitive = False

    @validator("data_directory", pre=True)
    def _expand_path(cls, value: Optional[str | Path]) -> Path:
        """Ensure configured paths expand user directories and exist."""

        path = Path(value).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    @property
    def store_path(self) -> Path:
        """Full path to the local store file."""

        return self.data_directory / self.store_file

    @property
    def session_timeout_seconds(self) -> float:
        return self.session_timeout_minutes * 60.0

    @property
    def lockout_seconds(self) -> float:
        return self.lockout_minutes * 60.0


@lru_cache()
def get_settings() -> FinassistSettings:
    """Return cached settings, ensuring consistent configuration across modules."""

    return FinassistSettings()
