"""
Seller listing service.

Owner-scoped CRUD. Deletion checks ownership here instead of relying on
backend row-level policies.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, List, Mapping

from domain.errors import Forbidden, NotFound, ValidationError
from domain.listing import NewSellerListing, SellerListing
from domain.project import dedupe_tags
from repositories.listing_repository import ListingRepository

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("project_name", "type", "location", "price_per_credit", "quantity")


def _parse_listing(fields: Mapping[str, Any]) -> NewSellerListing:
    missing = [name for name in _REQUIRED_FIELDS if fields.get(name) in (None, "")]
    if missing:
        raise ValidationError.missing(missing)

    try:
        price = Decimal(str(fields["price_per_credit"]))
    except InvalidOperation:
        raise ValidationError("price_per_credit must be a number", ["price_per_credit"]) from None
    try:
        quantity = int(fields["quantity"])
    except (TypeError, ValueError):
        raise ValidationError("quantity must be an integer", ["quantity"]) from None

    try:
        return NewSellerListing(
            project_name=str(fields["project_name"]).strip(),
            project_type=str(fields["type"]).strip(),
            location=str(fields["location"]).strip(),
            price_per_credit=price,
            quantity=quantity,
            description=fields.get("description") or None,
            certification=fields.get("certification") or None,
            co_benefits=dedupe_tags(fields.get("co_benefits")),
        )
    except ValueError as e:
        field_name = "quantity" if "quantity" in str(e) else "price_per_credit"
        raise ValidationError(str(e), [field_name]) from e


def create_seller_listing(repo: ListingRepository, user_id: str, fields: Mapping[str, Any]) -> SellerListing:
    listing = repo.insert(user_id, _parse_listing(fields))
    logger.info("Seller listing created", extra={"listing_id": listing.listing_id, "user_id": user_id})
    return listing


def list_seller_listings_by_user(repo: ListingRepository, user_id: str) -> List[SellerListing]:
    """The user's own listings, newest first."""

    return repo.list_by_user(user_id)


def list_active_seller_listings(repo: ListingRepository) -> List[SellerListing]:
    return repo.list_active()


def delete_seller_listing(repo: ListingRepository, user_id: str, listing_id: str) -> None:
    """Delete a listing; only its owner may do so."""

    listing = repo.get(listing_id)
    if listing is None:
        raise NotFound(f"Listing not found: {listing_id}")
    if not listing.is_owned_by(user_id):
        logger.warning(
            "Listing delete denied",
            extra={"listing_id": listing_id, "user_id": user_id},
        )
        raise Forbidden("Only the listing owner can delete it")

    repo.delete(listing_id)
    logger.info("Seller listing deleted", extra={"listing_id": listing_id, "user_id": user_id})


__all__ = [
    "create_seller_listing",
    "list_seller_listings_by_user",
    "list_active_seller_listings",
    "delete_seller_listing",
]
