"""Runtime configuration for todoview.

Settings are read from the environment (and a `.env` file, if present) once,
then passed explicitly to the client, refresher and app. The engine takes no
configuration at all.
"""

import os
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from todoview.models.constants import (
    COMPLETED_ITEMS_LIMIT,
    FETCH_TIMEOUT_SECONDS,
    HEARTBEAT_INTERVAL_SECONDS,
    MAX_HEARTBEATS,
    REFRESH_INTERVAL_SECONDS,
)

load_dotenv()

TODOIST_API_BASE = "https://api.todoist.com/sync/v9"


class ConfigurationError(Exception):
    """Raised when a required setting is missing."""


class Settings(BaseModel):
    """Service settings."""

    app_password: Optional[str] = Field(None, description="Shared login password")
    session_secret: Optional[str] = Field(None, description="Secret used to sign session tokens")
    jwt_algorithm: str = Field("HS256", description="Session token signing algorithm")
    jwt_expiration_hours: int = Field(24, ge=0, description="Session lifetime (0 = no expiry)")
    todoist_api_token: Optional[str] = Field(None, description="Todoist personal API token")
    todoist_client_secret: Optional[str] = Field(None, description="Todoist app secret for webhook signatures")
    todoist_api_base: str = Field(TODOIST_API_BASE, description="Todoist Sync API base URL")
    fetch_timeout_seconds: float = Field(FETCH_TIMEOUT_SECONDS, gt=0, description="Wall-clock budget for one snapshot fetch")
    refresh_interval_seconds: float = Field(REFRESH_INTERVAL_SECONDS, gt=0, description="Background refresh period")
    completed_items_limit: int = Field(COMPLETED_ITEMS_LIMIT, ge=1, le=200, description="Max completed items per fetch")
    heartbeat_interval_seconds: float = Field(HEARTBEAT_INTERVAL_SECONDS, gt=0, description="Event stream heartbeat period")
    max_heartbeats: int = Field(MAX_HEARTBEATS, ge=1, description="Heartbeats before the event stream closes")
    database_url: str = Field("sqlite:///./todoview.db", description="Snapshot cache database URL")
    enable_background_refresh: bool = Field(True, description="Run the periodic refresh loop")
    log_level: str = Field("INFO", description="Root log level")
    cors_origins: List[str] = Field(default_factory=lambda: ["*"], description="Allowed CORS origins")

    def require_todoist_token(self) -> str:
        """Get the Todoist token or raise ConfigurationError."""
        if not self.todoist_api_token:
            raise ConfigurationError("TODOIST_API_TOKEN is not set")
        return self.todoist_api_token


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


def _env_list(name: str, default: str) -> List[str]:
    return [part.strip() for part in os.getenv(name, default).split(",") if part.strip()]


def load_settings() -> Settings:
    """Build Settings from environment variables."""
    return Settings(
        app_password=os.getenv("APP_PASSWORD") or None,
        session_secret=os.getenv("SESSION_SECRET") or None,
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        jwt_expiration_hours=int(os.getenv("JWT_EXPIRATION_HOURS", "24")),
        todoist_api_token=os.getenv("TODOIST_API_TOKEN") or None,
        todoist_client_secret=os.getenv("TODOIST_CLIENT_SECRET") or None,
        todoist_api_base=os.getenv("TODOIST_API_BASE", TODOIST_API_BASE),
        fetch_timeout_seconds=float(os.getenv("FETCH_TIMEOUT_SECONDS", str(FETCH_TIMEOUT_SECONDS))),
        refresh_interval_seconds=float(os.getenv("REFRESH_INTERVAL_SECONDS", str(REFRESH_INTERVAL_SECONDS))),
        completed_items_limit=int(os.getenv("COMPLETED_ITEMS_LIMIT", str(COMPLETED_ITEMS_LIMIT))),
        heartbeat_interval_seconds=float(os.getenv("HEARTBEAT_INTERVAL_SECONDS", str(HEARTBEAT_INTERVAL_SECONDS))),
        max_heartbeats=int(os.getenv("MAX_HEARTBEATS", str(MAX_HEARTBEATS))),
        database_url=os.getenv("DATABASE_URL", "sqlite:///./todoview.db"),
        enable_background_refresh=_env_bool("ENABLE_BACKGROUND_REFRESH", "True"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        cors_origins=_env_list("CORS_ORIGINS", "*"),
    )
