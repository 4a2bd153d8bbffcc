"""
Tests for `api/config.py`.

Settings come from the environment; a bad value stops startup instead of
being silently replaced by a default.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError as SettingsError

from api.config import Settings

_ENV_VARS = (
    "STORE_BACKEND",
    "DOCUMENTS_BUCKET",
    "REGISTRATION_SIGNED_URL_TTL",
    "DOCUMENT_URL_TTL",
    "ALLOW_RESUBMIT_AFTER_APPROVAL",
    "PURCHASE_MAX_RETRIES",
    "CORS_ORIGINS",
    "LOG_LEVEL",
    "DEMO_TOKENS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    settings = Settings(_env_file=None)

    assert settings.store_backend == "supabase"
    assert settings.documents_bucket == "company-docs"
    assert settings.document_url_ttl == 3600
    assert settings.allow_resubmit_after_approval is False
    assert settings.allowed_origins == ("*",)


def test_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("STORE_BACKEND", " Memory ")
    monkeypatch.setenv("ALLOW_RESUBMIT_AFTER_APPROVAL", "true")
    monkeypatch.setenv("PURCHASE_MAX_RETRIES", "3")
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example,")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = Settings(_env_file=None)

    assert settings.store_backend == "memory"
    assert settings.allow_resubmit_after_approval is True
    assert settings.purchase_max_retries == 3
    assert settings.allowed_origins == ("https://a.example", "https://b.example")
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize(
    "name, value",
    [
        ("STORE_BACKEND", "sqlite"),
        ("PURCHASE_MAX_RETRIES", "0"),
        ("PURCHASE_MAX_RETRIES", "many"),
        ("DOCUMENT_URL_TTL", "-1"),
    ],
)
def test_rejects_bad_values(monkeypatch, name, value) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(SettingsError):
        Settings(_env_file=None)
