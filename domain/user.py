"""
Domain: authenticated callers.

Roles come from the server-issued `app_metadata.role` claim on the verified
token. Anything the user can edit (user_metadata) is never consulted.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional


class UserRole(str, Enum):
    BUYER = "buyer"
    PROJECT_DEVELOPER = "project_developer"
    VALIDATOR = "validator"
    ADMIN = "admin"


DEFAULT_ROLE = UserRole.BUYER


def resolve_role(app_metadata: Optional[Mapping[str, Any]]) -> UserRole:
    """Role from the token's app metadata; unknown or absent values fall back to buyer."""

    raw = (app_metadata or {}).get("role")
    try:
        return UserRole(raw)
    except ValueError:
        return DEFAULT_ROLE


@dataclass(frozen=True, slots=True)
class AuthenticatedUser:
    user_id: str
    email: Optional[str] = None
    role: UserRole = DEFAULT_ROLE
