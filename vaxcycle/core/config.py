"""Application configuration via pydantic settings."""

from datetime import time
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field
from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Typed application configuration."""

    app_env: str = Field("local", alias="APP_ENV")
    app_name: str = "Shelter Vaccination API"
    api_v1_prefix: str = "/api/v1"

    database_url: str = Field(
        "sqlite+aiosqlite:///./vaxcycle.db", alias="DATABASE_URL"
    )
    sync_database_url: str | None = Field(default=None, alias="SYNC_DATABASE_URL")

    log_level: str = Field("INFO", alias="LOG_LEVEL")

    shelter_timezone: str = Field("America/Sao_Paulo", alias="SHELTER_TIMEZONE")
    overdue_sweep_enabled: bool = Field(True, alias="OVERDUE_SWEEP_ENABLED")
    overdue_sweep_time: time = Field(time(0, 0), alias="OVERDUE_SWEEP_TIME")

    alert_window_days: int = Field(7, ge=0, alias="ALERT_WINDOW_DAYS")
    upcoming_window_days: int = Field(30, ge=1, alias="UPCOMING_WINDOW_DAYS")
    recent_doses_limit: int = Field(5, ge=1, alias="RECENT_DOSES_LIMIT")

    registration_max_attempts: int = Field(
        3, ge=1, alias="REGISTRATION_MAX_ATTEMPTS"
    )
    request_timeout_seconds: float | None = Field(
        10.0, alias="REQUEST_TIMEOUT_SECONDS"
    )

    cors_allowlist: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["http://localhost:5173"], alias="CORS_ALLOWLIST"
    )

    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parents[2] / ".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("cors_allowlist", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("shelter_timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except ZoneInfoNotFoundError as exc:
            raise ValueError(f"Unknown time zone: {value}") from exc
        return value

    @property
    def timezone(self) -> ZoneInfo:
        return ZoneInfo(self.shelter_timezone)


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""
    return Settings()  # type: ignore[call-arg]
