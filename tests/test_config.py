# tests/test_config.py

from __future__ import annotations

import logging

import pydantic
import pytest

from studentos.config import LoggingSettings, Settings


def test_settings_load_from_environment() -> None:
    settings = Settings(_env_file=None)

    assert settings.db.url == "sqlite+aiosqlite://"
    assert str(settings.auth.url).startswith("https://project.supabase.test")
    assert settings.port == 3000
    assert settings.forwarding.secret is None


def test_missing_database_url_fails_fast(monkeypatch) -> None:
    monkeypatch.delenv("DB_URL", raising=False)

    with pytest.raises(pydantic.ValidationError):
        Settings(_env_file=None)


def test_missing_identity_provider_key_fails_fast(monkeypatch) -> None:
    monkeypatch.delenv("SUPABASE_SERVICE_ROLE_KEY", raising=False)

    with pytest.raises(pydantic.ValidationError):
        Settings(_env_file=None)


def test_short_encryption_key_is_rejected(monkeypatch) -> None:
    monkeypatch.setenv("ENCRYPTION_KEY", "too-short")

    with pytest.raises(pydantic.ValidationError):
        Settings(_env_file=None)


def test_port_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("PORT", "8080")

    assert Settings(_env_file=None).port == 8080


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("trace", logging.DEBUG),
        ("DEBUG", logging.DEBUG),
        ("Info", logging.INFO),
        ("WARN", logging.WARNING),
        ("error", logging.ERROR),
        ("fatal", logging.CRITICAL),
    ],
)
def test_log_levels_map_to_stdlib(monkeypatch, raw, expected) -> None:
    monkeypatch.setenv("LOG_LEVEL", raw)

    assert LoggingSettings(_env_file=None).numeric_level == expected


def test_unknown_log_level_is_rejected(monkeypatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "verbose")

    with pytest.raises(pydantic.ValidationError):
        LoggingSettings(_env_file=None)
