"""Centralized application configuration using Pydantic settings."""
from datetime import timedelta
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven configuration (variables are prefixed with ROOMRES_)."""

    model_config = SettingsConfigDict(env_prefix="ROOMRES_", env_file=".env", env_file_encoding="utf-8")

    app_name: str = Field(default="Room Reservation API")
    timezone: str = Field(default="Asia/Manila", description="Timezone all timestamps are normalized to")

    start_window_minutes: int = Field(default=15, ge=0, description="How early before its start a reservation may be started")
    expiry_grace_minutes: int = Field(default=15, ge=0, description="How long past its start an unstarted reservation survives")
    extension_buffer_minutes: int = Field(default=5, ge=0, description="Gap kept before the next booking when capping extensions")
    fixed_extension_minutes: int = Field(default=60, ge=1, description="Length of a fixed extension when none is given")

    jwt_secret: str = Field(default="change-me-in-env", description="JWT signing secret")
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    access_token_expire_minutes: int = Field(default=30, description="Token lifetime in minutes")

    log_level: str = Field(default="INFO")
    log_dir: Optional[str] = Field(default=None, description="Directory for log files; console only when unset")

    @property
    def start_window(self) -> timedelta:
        return timedelta(minutes=self.start_window_minutes)

    @property
    def expiry_grace(self) -> timedelta:
        return timedelta(minutes=self.expiry_grace_minutes)

    @property
    def extension_buffer(self) -> timedelta:
        return timedelta(minutes=self.extension_buffer_minutes)

    @property
    def fixed_extension(self) -> timedelta:
        return timedelta(minutes=self.fixed_extension_minutes)


@lru_cache
def get_settings() -> Settings:
    """Return a cached instance of the Settings object."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the cached Settings instance (useful for tests)."""

    get_settings.cache_clear()
