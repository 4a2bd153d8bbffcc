"""
Auth provider access.

Validates bearer tokens against Supabase Auth and maps the provider's user to
an AuthenticatedUser. Token internals are the provider's concern.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Protocol

import httpx
from supabase import AuthError, AuthRetryableError  # type: ignore[import-not-found]

from domain.errors import InternalError
from domain.user import AuthenticatedUser, resolve_role
from repositories.client import get_supabase

logger = logging.getLogger(__name__)


class TokenVerifier(Protocol):
    def verify(self, token: str) -> Optional[AuthenticatedUser]: ...


class SupabaseTokenVerifier:
    """TokenVerifier that asks Supabase Auth who owns the token."""

    def __init__(self, client: Any = None) -> None:
        self._client = client

    def verify(self, token: str) -> Optional[AuthenticatedUser]:
        client = self._client if self._client is not None else get_supabase()
        try:
            response = client.auth.get_user(token)
        except (AuthRetryableError, httpx.HTTPError) as e:
            raise InternalError(f"Failed to verify token: {e}") from e
        except AuthError as e:
            logger.info("Rejected bearer token", extra={"reason": str(e)})
            return None

        user = getattr(response, "user", None)
        if user is None or not getattr(user, "id", None):
            return None

        return AuthenticatedUser(
            user_id=str(user.id),
            email=getattr(user, "email", None),
            role=resolve_role(getattr(user, "app_metadata", None)),
        )


class StaticTokenVerifier:
    """
    TokenVerifier over a fixed token table.

    Backs the `memory` store backend (tokens come from DEMO_TOKENS) and the
    test-suite.
    """

    def __init__(self, tokens: Mapping[str, AuthenticatedUser]) -> None:
        self._tokens = dict(tokens)

    @classmethod
    def from_spec(cls, spec: str) -> "StaticTokenVerifier":
        """Parse "token:user_id[:role],..." into a verifier."""

        tokens: Dict[str, AuthenticatedUser] = {}
        for entry in filter(None, (part.strip() for part in spec.split(","))):
            token, _, rest = entry.partition(":")
            user_id, _, role = rest.partition(":")
            if not token or not user_id:
                raise ValueError(f"Invalid token entry: {entry!r}")
            tokens[token] = AuthenticatedUser(
                user_id=user_id,
                role=resolve_role({"role": role} if role else None),
            )
        return cls(tokens)

    def verify(self, token: str) -> Optional[AuthenticatedUser]:
        return self._tokens.get(token)


__all__ = ["TokenVerifier", "SupabaseTokenVerifier", "StaticTokenVerifier"]
