"""
Domain: error taxonomy.

Every failure the services surface is one of these types. The HTTP layer maps
each type to a status code (see `api/errors.py`); nothing below the HTTP layer
knows about status codes.
"""

from __future__ import annotations

from typing import Iterable, Optional, Tuple


class MarketplaceError(Exception):
    """Base class for all marketplace failures."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(MarketplaceError):
    """Missing or malformed required input. Carries the offending field names."""

    def __init__(self, message: str, fields: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.fields: Tuple[str, ...] = tuple(fields)

    @classmethod
    def missing(cls, fields: Iterable[str]) -> "ValidationError":
        names = list(fields)
        return cls(f"Missing required fields: {', '.join(names)}", names)


class Unauthorized(MarketplaceError):
    """Missing or invalid bearer token."""


class Forbidden(MarketplaceError):
    """Caller is authenticated but does not own the resource."""


class NotFound(MarketplaceError):
    """Unknown project, registration, listing or document."""


class InsufficientInventory(MarketplaceError):
    """Requested quantity exceeds the project's available credits."""

    def __init__(self, project_id: str, requested: int, available: int) -> None:
        super().__init__(
            f"Not enough credits available: requested {requested}, available {available}"
        )
        self.project_id = project_id
        self.requested = requested
        self.available = available


class UploadError(MarketplaceError):
    """Object-storage write failed for a named document field."""

    def __init__(self, field_name: str, reason: Optional[str] = None) -> None:
        message = f"Failed to upload {field_name}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.field_name = field_name


class RegistrationLocked(MarketplaceError):
    """Submission refused because the registration is already approved."""


class InternalError(MarketplaceError, RuntimeError):
    """Unexpected storage/backend failure. The message names the operation."""


__all__ = [
    "MarketplaceError",
    "ValidationError",
    "Unauthorized",
    "Forbidden",
    "NotFound",
    "InsufficientInventory",
    "UploadError",
    "RegistrationLocked",
    "InternalError",
]
