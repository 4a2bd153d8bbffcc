"""
Tests for `services/listing_service.py`.

Covers:
- Listing creation and validation
- Per-seller and active reads
- Owner-only deletion
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from domain.errors import Forbidden, NotFound, ValidationError
from services.listing_service import (
    create_seller_listing,
    delete_seller_listing,
    list_active_seller_listings,
    list_seller_listings_by_user,
)

LISTING = {
    "project_name": "Mangrove Belt",
    "type": "Restoration",
    "location": "Kerala, India",
    "price_per_credit": "16.5",
    "quantity": "200",
}


def test_create_listing(listings) -> None:
    listing = create_seller_listing(listings, "user-a", LISTING)

    assert listing.user_id == "user-a"
    assert listing.price_per_credit == Decimal("16.5")
    assert listing.quantity == 200
    assert list_seller_listings_by_user(listings, "user-a") == [listing]
    assert list_seller_listings_by_user(listings, "user-b") == []
    assert list_active_seller_listings(listings) == [listing]


def test_create_listing_names_missing_fields(listings) -> None:
    with pytest.raises(ValidationError) as excinfo:
        create_seller_listing(listings, "user-a", {"project_name": "x"})

    assert "price_per_credit" in excinfo.value.fields


@pytest.mark.parametrize("field, value", [("quantity", "0"), ("price_per_credit", "-2"), ("quantity", "many")])
def test_create_listing_rejects_bad_numbers(listings, field, value) -> None:
    with pytest.raises(ValidationError) as excinfo:
        create_seller_listing(listings, "user-a", dict(LISTING, **{field: value}))

    assert excinfo.value.fields == (field,)


def test_owner_can_delete(listings) -> None:
    listing = create_seller_listing(listings, "user-a", LISTING)

    delete_seller_listing(listings, "user-a", listing.listing_id)

    assert list_seller_listings_by_user(listings, "user-a") == []


def test_other_user_cannot_delete(listings) -> None:
    listing = create_seller_listing(listings, "user-a", LISTING)

    with pytest.raises(Forbidden):
        delete_seller_listing(listings, "user-b", listing.listing_id)

    assert listings.get(listing.listing_id) == listing


def test_delete_unknown_listing(listings) -> None:
    with pytest.raises(NotFound):
        delete_seller_listing(listings, "user-a", "missing")
