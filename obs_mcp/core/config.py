"""Configuration management for the obs-mcp server."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PROMETHEUS_URL = "http://localhost:9090"

_ENV_FILE_CANDIDATES: tuple[str, ...] = (".env",)


class ObsMCPSettings(BaseSettings):
    """Centralised configuration derived from environment variables."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_file: str | None = Field(
        None,
        description="Optional log file path; stderr is always used",
    )

    prometheus_url: str = Field(
        DEFAULT_PROMETHEUS_URL, description="Prometheus-compatible backend base URL"
    )
    prometheus_timeout: float = Field(
        10.0, gt=0, description="HTTP timeout in seconds for metadata calls"
    )

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE_CANDIDATES,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("prometheus_url", mode="before")
    @classmethod
    def _default_when_empty(cls, value: str | None) -> str:
        if value is None or not str(value).strip():
            return DEFAULT_PROMETHEUS_URL
        return str(value).strip()

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return str(value).upper()


@lru_cache
def get_settings() -> ObsMCPSettings:
    """Return a cached ObsMCPSettings instance."""

    return ObsMCPSettings()


def resolved_env_file() -> str | None:
    """Return the first readable .env file from the candidate list."""

    for candidate in _ENV_FILE_CANDIDATES:
        path = Path(candidate).expanduser()
        if path.is_file():
            return str(path)
    return None
