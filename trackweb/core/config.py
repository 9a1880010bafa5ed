from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, Iterable, Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

PACKAGE_DIR = Path(__file__).resolve().parent.parent

DEFAULT_UNPROTECTED_PATHS = [
    "/",
    "/login",
    "/register",
    "/logout",
    "/points",
    "/health",
    "/metrics",
]


class AppSettings(BaseSettings):
    """Environment-driven application configuration."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    APP_NAME: str = "Trackweb"
    TEMPLATES_DIR: Path | None = None
    STATIC_DIR: Path | None = None
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["json", "text"] = "json"

    # ---- Remote backend
    API_BASE_URL: str = Field(
        default="http://localhost:8000",
        validation_alias=AliasChoices("API_BASE_URL", "BASE_API_URL"),
    )
    API_TIMEOUT: float | None = 10.0
    API_CREDENTIAL_FIELD: Literal["user_name", "email"] = "user_name"
    API_UPDATE_USER_PATH: str = "/api/user/{id}"
    API_REGISTER_PATH: str = "/api/auth/register"
    API_POINTS_PREFIX: str = "/api/world-aths"

    # ---- Session cookie
    SESSION_COOKIE_NAME: str = "session"
    SESSION_MAX_AGE: int = 60 * 60 * 24 * 7
    SESSION_COOKIE_HTTPONLY: bool = False
    SESSION_COOKIE_SECURE: bool = False
    SESSION_COOKIE_SAMESITE: Literal["lax", "strict", "none"] = "lax"

    # ---- Request gate
    GATE_MODE: Literal["open", "protect"] = "open"
    UNPROTECTED_PATHS: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_UNPROTECTED_PATHS)
    )

    HOST: str = "0.0.0.0"
    PORT: int = 8090

    @property
    def templates_dir(self) -> Path:
        return self.TEMPLATES_DIR or PACKAGE_DIR / "templates"

    @property
    def static_dir(self) -> Path:
        return self.STATIC_DIR or PACKAGE_DIR / "static"

    @field_validator("API_BASE_URL")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("API_TIMEOUT", mode="before")
    @classmethod
    def parse_timeout(cls, value: Any) -> Any:
        # An empty or "none" timeout waits on the backend indefinitely.
        if isinstance(value, str) and value.strip().lower() in ("", "none", "null"):
            return None
        return value

    @field_validator("UNPROTECTED_PATHS", mode="before")
    @classmethod
    def parse_unprotected_paths(cls, value: Any) -> list[str]:
        if value in (None, "", []):
            return []
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        if isinstance(value, Iterable):
            return [str(item).strip() for item in value if str(item).strip()]
        raise TypeError("UNPROTECTED_PATHS must be a comma separated string or list")


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    return AppSettings()


settings = get_settings()
