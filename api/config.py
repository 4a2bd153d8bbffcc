"""
Application settings.

Read once from the environment (and the project's .env file). Supabase
credentials are read separately by `repositories/client.py`.

Environment variables (all optional):
- STORE_BACKEND: "supabase" (default) or "memory" for a backend-less local run
- DOCUMENTS_BUCKET: storage bucket for registration documents
- REGISTRATION_SIGNED_URL_TTL: seconds, links stored with a registration
- DOCUMENT_URL_TTL: seconds, links handed out by the document endpoint
- ALLOW_RESUBMIT_AFTER_APPROVAL: "true" lets approved companies resubmit
- PURCHASE_MAX_RETRIES: optimistic-concurrency retry bound
- CORS_ORIGINS: comma-separated origins, "*" for any
- LOG_LEVEL: logging level name
- DEMO_TOKENS: "token:user_id[:role],..." bearer tokens for the memory backend
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal, Tuple

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from services.purchase_service import DEFAULT_MAX_RETRIES
from services.registration_service import ONE_HOUR_SECONDS, ONE_YEAR_SECONDS

env_path = Path(__file__).parent.parent / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=env_path,
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    store_backend: Literal["supabase", "memory"] = "supabase"
    documents_bucket: str = "company-docs"
    registration_signed_url_ttl: int = Field(default=ONE_YEAR_SECONDS, gt=0)
    document_url_ttl: int = Field(default=ONE_HOUR_SECONDS, gt=0)
    allow_resubmit_after_approval: bool = False
    purchase_max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=1)
    cors_origins: str = "*"
    log_level: str = "INFO"
    demo_tokens: str = ""

    @field_validator("store_backend", mode="before")
    @classmethod
    def _normalize_backend(cls, value: object) -> object:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.strip().upper() or "INFO"

    @property
    def allowed_origins(self) -> Tuple[str, ...]:
        """CORS_ORIGINS split on commas; empty means any origin."""

        return tuple(o.strip() for o in self.cors_origins.split(",") if o.strip()) or ("*",)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


__all__ = ["Settings", "get_settings"]
