"""Configuration for credential rotation.

Values, not mechanism: where the secrets volume is mounted, how often it is
polled, and the default pool name. Pool sizing and timeouts belong to the
code that builds the engine.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SECRETS_PATH = "/var/run/secrets/database"
DEFAULT_REFRESH_INTERVAL_MS = 30_000


class Settings(BaseSettings):
    """Rotation settings, read from K8S_SECRETS_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="K8S_SECRETS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Directory where the secrets manager mounts username/password/jdbc-url
    path: str = DEFAULT_SECRETS_PATH
    refresh_interval_ms: int = Field(default=DEFAULT_REFRESH_INTERVAL_MS, gt=0)
    pool_name: str = "RotatingSecretsPool"
    log_level: str = "INFO"


settings = Settings()


def get_secrets_path() -> Path:
    """Return the configured secrets directory as a Path."""

    return Path(settings.path)


def get_refresh_interval_seconds() -> float:
    """Return the poll interval in seconds."""

    return settings.refresh_interval_ms / 1000.0
