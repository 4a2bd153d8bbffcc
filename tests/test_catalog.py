"""
Tests for the project catalog, contact form and seeding.

Covers:
- Catalog reads and project submission
- Contact-form validation
- Idempotent seeding of sample projects and platform statistics
"""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal

import pytest

from domain.errors import NotFound, ValidationError
from domain.project import ProjectStatus, dedupe_tags
from repositories.portfolio_repository import get_stats
from repositories.project_repository import get_project
from services.contact_service import submit_contact
from services.project_service import create_project, get_marketplace_project, list_marketplace_projects
from services.purchase_service import PurchaseRequest, execute_purchase
from services.seed_service import initial_platform_stats, sample_projects, seed_marketplace


def test_get_unknown_project(store) -> None:
    with pytest.raises(NotFound):
        get_marketplace_project(store, "missing")


def test_create_project_is_pending_verification(store) -> None:
    project = create_project(
        store,
        {
            "name": "Seagrass Meadow",
            "location": "Palk Bay, India",
            "type": "Conservation",
            "price": "14.25",
            "certification": "Gold Standard",
            "credits_available": 500,
            "co_benefits": ["Fisheries", "Fisheries", " "],
        },
    )

    assert project.status is ProjectStatus.PENDING_VERIFICATION
    assert project.price == Decimal("14.25")
    assert project.co_benefits == ("Fisheries",)
    assert get_project(store, project.project_id) == project
    assert project in list_marketplace_projects(store)


def test_create_project_names_missing_fields(store) -> None:
    with pytest.raises(ValidationError) as excinfo:
        create_project(store, {"name": "Only a name"})

    assert set(excinfo.value.fields) == {"location", "type", "price", "certification"}


@pytest.mark.parametrize("price", ["0", "-1", "abc"])
def test_create_project_rejects_bad_price(store, price) -> None:
    fields = {"name": "n", "location": "l", "type": "t", "price": price, "certification": "c"}

    with pytest.raises(ValidationError) as excinfo:
        create_project(store, fields)

    assert excinfo.value.fields == ("price",)


def test_dedupe_tags_accepts_single_string() -> None:
    assert dedupe_tags("Biodiversity") == ("Biodiversity",)
    assert dedupe_tags(None) == ()


def test_contact_requires_fields(store) -> None:
    with pytest.raises(ValidationError) as excinfo:
        submit_contact(store, {"name": "Asha", "email": "a@example.com"})

    assert excinfo.value.fields == ("subject", "message")


def test_contact_is_stored(store) -> None:
    contact = submit_contact(
        store,
        {
            "name": "Asha",
            "email": "a@example.com",
            "subject": "Partnership",
            "message": "Hello",
            "inquiryType": "partnership",
        },
    )

    assert contact.contact_id.startswith("contact:")
    assert contact.inquiry_type == "partnership"
    assert store.get(contact.contact_id) is not None


def test_seed_is_idempotent(store) -> None:
    first = seed_marketplace(store)
    second = seed_marketplace(store)

    assert first.projects_created == ["1", "2", "3", "4"]
    assert first.stats_created is True
    assert second.projects_created == []
    assert second.stats_created is False
    assert [p.project_id for p in list_marketplace_projects(store)] == [p.project_id for p in sample_projects()]
    stats = get_stats(store)
    assert stats.total_credits_sold == 125000
    assert replace(initial_platform_stats(), last_updated=stats.last_updated) == stats


def test_seed_keeps_existing_inventory(store) -> None:
    seed_marketplace(store)
    project = get_project(store, "1")

    execute_purchase(store, PurchaseRequest("1", 5, "user-a"))
    seed_marketplace(store)

    assert get_project(store, "1").credits_available == project.credits_available - 5
