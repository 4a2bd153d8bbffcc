"""
Domain: seller listings.

A listing is owned exclusively by the user who created it; only that user may
delete it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple

from .time import require_utc_timestamp


class ListingStatus(str, Enum):
    ACTIVE = "active"
    SOLD = "sold"
    PAUSED = "paused"


@dataclass(frozen=True, slots=True)
class NewSellerListing:
    """Seller input for a new listing (before the backend assigns an id)."""

    project_name: str
    project_type: str
    location: str
    price_per_credit: Decimal
    quantity: int
    description: Optional[str] = None
    certification: Optional[str] = None
    co_benefits: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.price_per_credit <= 0:
            raise ValueError("price_per_credit must be > 0")
        if self.quantity <= 0:
            raise ValueError("quantity must be > 0")


@dataclass(frozen=True, slots=True)
class SellerListing:
    listing_id: str
    user_id: str
    project_name: str
    project_type: str
    location: str
    price_per_credit: Decimal
    quantity: int
    created_at: datetime
    status: ListingStatus = ListingStatus.ACTIVE
    description: Optional[str] = None
    certification: Optional[str] = None
    co_benefits: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)

    def is_owned_by(self, user_id: str) -> bool:
        return self.user_id == user_id
