"""
Seller listing repository (persistence).

Persistence operations for SellerListing against the `seller_listings` table.
Ownership rules are enforced by the listing service, not here.
"""

from __future__ import annotations

import threading
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Protocol
from uuid import uuid4

import httpx
from postgrest.exceptions import APIError

from domain.errors import InternalError
from domain.listing import ListingStatus, NewSellerListing, SellerListing
from domain.project import dedupe_tags
from domain.time import parse_utc_datetime, utc_now
from repositories.client import get_supabase

# Supabase table name for seller listings.
# Keep this aligned with sql/schema.sql.
_LISTINGS_TABLE: str = "seller_listings"


class ListingRepository(Protocol):
    def insert(self, user_id: str, listing: NewSellerListing) -> SellerListing: ...

    def list_by_user(self, user_id: str) -> List[SellerListing]: ...

    def list_active(self) -> List[SellerListing]: ...

    def get(self, listing_id: str) -> Optional[SellerListing]: ...

    def delete(self, listing_id: str) -> None: ...


def _row_to_listing(row: Mapping[str, Any]) -> SellerListing:
    """Convert a Supabase row into a SellerListing."""

    return SellerListing(
        listing_id=str(row["id"]),
        user_id=str(row["user_id"]),
        project_name=str(row["project_name"]),
        project_type=str(row["type"]),
        location=str(row["location"]),
        price_per_credit=Decimal(str(row["price_per_credit"])),
        quantity=int(row["quantity"]),
        created_at=parse_utc_datetime(row["created_at"]),
        status=ListingStatus(row.get("status") or ListingStatus.ACTIVE.value),
        description=row.get("description"),
        certification=row.get("certification"),
        co_benefits=dedupe_tags(row.get("co_benefits")),
    )


def _check(response: Any, operation: str) -> List[Dict[str, Any]]:
    error = getattr(response, "error", None)
    if error:
        raise InternalError(f"Failed to {operation}: {error}")
    return getattr(response, "data", None) or []


def _reason(e: Exception) -> str:
    # APIError carries a message; transport errors only have str().
    return getattr(e, "message", None) or str(e)


class SupabaseListingRepository:
    def __init__(self, client: Any = None) -> None:
        self._client = client

    def _table(self):
        client = self._client if self._client is not None else get_supabase()
        return client.table(_LISTINGS_TABLE)

    def insert(self, user_id: str, listing: NewSellerListing) -> SellerListing:
        payload: dict[str, Any] = {
            "user_id": user_id,
            "status": ListingStatus.ACTIVE.value,
            "project_name": listing.project_name,
            "type": listing.project_type,
            "location": listing.location,
            "price_per_credit": str(listing.price_per_credit),
            "quantity": listing.quantity,
            "description": listing.description,
            "certification": listing.certification,
            "co_benefits": list(listing.co_benefits),
        }
        try:
            response = self._table().insert(payload).execute()
        except (APIError, httpx.HTTPError) as e:
            raise InternalError(f"Failed to create listing: {_reason(e)}") from e

        rows = _check(response, "create listing")
        if not rows:
            raise InternalError("Failed to create listing: no row returned")
        return _row_to_listing(rows[0])

    def list_by_user(self, user_id: str) -> List[SellerListing]:
        try:
            response = (
                self._table()
                .select("*")
                .eq("user_id", user_id)
                .order("created_at", desc=True)
                .execute()
            )
        except (APIError, httpx.HTTPError) as e:
            raise InternalError(f"Failed to list listings: {_reason(e)}") from e
        return [_row_to_listing(row) for row in _check(response, "list listings")]

    def list_active(self) -> List[SellerListing]:
        try:
            response = (
                self._table()
                .select("*")
                .eq("status", ListingStatus.ACTIVE.value)
                .order("created_at", desc=True)
                .execute()
            )
        except (APIError, httpx.HTTPError) as e:
            raise InternalError(f"Failed to list listings: {_reason(e)}") from e
        return [_row_to_listing(row) for row in _check(response, "list listings")]

    def get(self, listing_id: str) -> Optional[SellerListing]:
        try:
            response = self._table().select("*").eq("id", listing_id).limit(1).execute()
        except (APIError, httpx.HTTPError) as e:
            raise InternalError(f"Failed to get listing: {_reason(e)}") from e
        rows = _check(response, "get listing")
        return _row_to_listing(rows[0]) if rows else None

    def delete(self, listing_id: str) -> None:
        try:
            response = self._table().delete().eq("id", listing_id).execute()
        except (APIError, httpx.HTTPError) as e:
            raise InternalError(f"Failed to delete listing: {_reason(e)}") from e
        _check(response, "delete listing")


class InMemoryListingRepository:
    """Process-local ListingRepository for the `memory` backend and tests."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._rows: Dict[str, SellerListing] = {}

    def insert(self, user_id: str, listing: NewSellerListing) -> SellerListing:
        created = SellerListing(
            listing_id=str(uuid4()),
            user_id=user_id,
            project_name=listing.project_name,
            project_type=listing.project_type,
            location=listing.location,
            price_per_credit=listing.price_per_credit,
            quantity=listing.quantity,
            created_at=utc_now(),
            description=listing.description,
            certification=listing.certification,
            co_benefits=listing.co_benefits,
        )
        with self._lock:
            self._rows[created.listing_id] = created
        return created

    def list_by_user(self, user_id: str) -> List[SellerListing]:
        with self._lock:
            rows = [row for row in self._rows.values() if row.user_id == user_id]
        return sorted(rows, key=lambda row: row.created_at, reverse=True)

    def list_active(self) -> List[SellerListing]:
        with self._lock:
            rows = [row for row in self._rows.values() if row.status is ListingStatus.ACTIVE]
        return sorted(rows, key=lambda row: row.created_at, reverse=True)

    def get(self, listing_id: str) -> Optional[SellerListing]:
        with self._lock:
            return self._rows.get(listing_id)

    def delete(self, listing_id: str) -> None:
        with self._lock:
            self._rows.pop(listing_id, None)


__all__ = ["ListingRepository", "SupabaseListingRepository", "InMemoryListingRepository"]
