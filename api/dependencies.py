"""
FastAPI dependencies.

Wires the configured storage backend into the routers and authenticates
bearer tokens. Tests replace these through `app.dependency_overrides`.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header

from api.config import Settings, get_settings
from domain.errors import Unauthorized
from domain.user import AuthenticatedUser
from repositories.auth_repository import StaticTokenVerifier, SupabaseTokenVerifier, TokenVerifier
from repositories.kv_store import InMemoryKeyValueStore, KeyValueStore, SupabaseKeyValueStore
from repositories.listing_repository import (
    InMemoryListingRepository,
    ListingRepository,
    SupabaseListingRepository,
)
from repositories.storage_repository import (
    DocumentStorage,
    InMemoryDocumentStorage,
    SupabaseDocumentStorage,
)
from services.registration_service import RegistrationPolicy
from services.seed_service import seed_marketplace


@lru_cache(maxsize=1)
def _memory_store() -> InMemoryKeyValueStore:
    # A fresh process-local store has no deploy step, so it is seeded here.
    store = InMemoryKeyValueStore()
    seed_marketplace(store)
    return store


@lru_cache(maxsize=1)
def _memory_listings() -> InMemoryListingRepository:
    return InMemoryListingRepository()


@lru_cache(maxsize=4)
def _memory_storage(bucket: str) -> InMemoryDocumentStorage:
    return InMemoryDocumentStorage(bucket)


def get_store(settings: Settings = Depends(get_settings)) -> KeyValueStore:
    if settings.store_backend == "memory":
        return _memory_store()
    return SupabaseKeyValueStore()


def get_document_storage(settings: Settings = Depends(get_settings)) -> DocumentStorage:
    if settings.store_backend == "memory":
        return _memory_storage(settings.documents_bucket)
    return SupabaseDocumentStorage(settings.documents_bucket)


def get_listing_repository(settings: Settings = Depends(get_settings)) -> ListingRepository:
    if settings.store_backend == "memory":
        return _memory_listings()
    return SupabaseListingRepository()


def get_token_verifier(settings: Settings = Depends(get_settings)) -> TokenVerifier:
    if settings.store_backend == "memory":
        return StaticTokenVerifier.from_spec(settings.demo_tokens)
    return SupabaseTokenVerifier()


def get_registration_policy(settings: Settings = Depends(get_settings)) -> RegistrationPolicy:
    return RegistrationPolicy(
        allow_resubmit_after_approval=settings.allow_resubmit_after_approval,
        signed_url_ttl_seconds=settings.registration_signed_url_ttl,
        document_url_ttl_seconds=settings.document_url_ttl,
    )


def get_current_user(
    authorization: Optional[str] = Header(None),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> AuthenticatedUser:
    """Authenticate the `Authorization: Bearer <token>` header."""

    if not authorization:
        raise Unauthorized("Authorization header required")

    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise Unauthorized("Unauthorized - Invalid token")

    user = verifier.verify(token)
    if user is None:
        raise Unauthorized("Unauthorized - Invalid token")
    return user
