"""Central configuration for the StudentOS task feed API.

This module uses Pydantic Settings for validation and env management.
Required values have no defaults, so a missing variable fails at startup.
"""
from __future__ import annotations

import logging
from enum import Enum
from functools import lru_cache
from typing import Literal

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment."""
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"


# Level names accepted in LOG_LEVEL, mapped onto stdlib logging levels.
LOG_LEVELS: dict[str, int] = {
    "trace": logging.DEBUG,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
}


class DatabaseSettings(BaseSettings):
    """Relational store configuration."""
    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    url: str = Field(description="Async database connection URL")
    pool_size: int = Field(default=5, ge=1, le=50)
    max_overflow: int = Field(default=10, ge=0, le=100)
    echo: bool = Field(default=False)


class AuthSettings(BaseSettings):
    """Identity provider configuration."""
    model_config = SettingsConfigDict(
        env_prefix="SUPABASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    url: AnyHttpUrl
    anon_key: str = Field(min_length=1)
    service_role_key: str = Field(min_length=1)
    timeout_seconds: float = Field(default=10.0, gt=0, le=60)


class ForwardingSettings(BaseSettings):
    """Optional email-forwarding integration."""
    model_config = SettingsConfigDict(
        env_prefix="FORWARDING_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    domain: str | None = Field(default=None)
    secret: str | None = Field(default=None)


class LoggingSettings(BaseSettings):
    """Logging configuration."""
    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    level: Literal["trace", "debug", "info", "warn", "error", "fatal"] = Field(default="info")
    format: Literal["json", "plain"] = Field(default="json")
    file: str | None = Field(default=None)

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v):
        return v.lower() if isinstance(v, str) else v

    @property
    def numeric_level(self) -> int:
        return LOG_LEVELS[self.level]


class Settings(BaseSettings):
    """Main application settings."""
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Environment = Field(default=Environment.DEVELOPMENT)
    debug: bool = Field(default=False)
    app_name: str = Field(default="StudentOS API")
    version: str = Field(default="0.1.0")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000, ge=1, le=65535)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    encryption_key: str = Field(min_length=32)

    # Sub-configs
    db: DatabaseSettings = Field(default_factory=DatabaseSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    forwarding: ForwardingSettings = Field(default_factory=ForwardingSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
