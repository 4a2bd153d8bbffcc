"""
Pytest configuration.

Adds the project root to the Python path so tests can import api, domain,
repositories and services, and provides in-memory backends so no test ever
talks to a real Supabase project.
"""

import sys
from decimal import Decimal
from pathlib import Path

import pytest

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from domain.project import Project  # noqa: E402
from domain.registration import ENTITY_TYPES  # noqa: E402
from domain.user import AuthenticatedUser, UserRole  # noqa: E402
from repositories.auth_repository import StaticTokenVerifier  # noqa: E402
from repositories.kv_store import InMemoryKeyValueStore  # noqa: E402
from repositories.listing_repository import InMemoryListingRepository  # noqa: E402
from repositories.project_repository import insert_project  # noqa: E402
from repositories.storage_repository import InMemoryDocumentStorage  # noqa: E402
from services.registration_service import DocumentUpload  # noqa: E402

USER_A = AuthenticatedUser(user_id="user-a", email="a@example.com", role=UserRole.BUYER)
USER_B = AuthenticatedUser(user_id="user-b", email="b@example.com", role=UserRole.PROJECT_DEVELOPER)


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def storage() -> InMemoryDocumentStorage:
    return InMemoryDocumentStorage("company-docs-test")


@pytest.fixture
def listings() -> InMemoryListingRepository:
    return InMemoryListingRepository()


@pytest.fixture
def verifier() -> StaticTokenVerifier:
    return StaticTokenVerifier({"token-a": USER_A, "token-b": USER_B})


def make_project(project_id: str = "p1", credits: int = 100, price: str = "17") -> Project:
    return Project(
        project_id=project_id,
        name=f"Mangrove Project {project_id}",
        location="Andhra Pradesh, India",
        project_type="Restoration",
        price=Decimal(price),
        certification="Verified Carbon Standard (VCS)",
        credits_available=credits,
    )


@pytest.fixture
def project(store: InMemoryKeyValueStore) -> Project:
    created = make_project()
    assert insert_project(store, created)
    return created


def valid_form() -> dict:
    """registrationData for a complete submission (all three steps)."""

    return {
        "companyName": "Acme Coastal Ltd",
        "companySize": "Small Business (11-50 employees)",
        "companyContact": "+91 98765 43210",
        "gstin": "22AAAAA0000A1Z5",
        "addressLine1": "12 Harbour Road",
        "addressLine2": "",
        "pincode": "530001",
        "country": "India",
        "state": "Andhra Pradesh",
        "city": "Visakhapatnam",
        "fullName": "Asha Rao",
        "designation": "Director",
        "entityType": ENTITY_TYPES[0],
        "accountName": "Acme Coastal Ltd",
        "accountNumber": "123456789012",
        "bankName": "State Bank",
        "branchName": "Port Branch",
        "swiftCode": "SBININBB",
        "ifscCode": "SBIN0001234",
        "bankCity": "Visakhapatnam",
        "bankCountry": "India",
    }


def valid_documents() -> dict:
    """The mandatory KYC documents plus the bank document."""

    return {
        name: DocumentUpload(name, f"{name}.pdf", b"%PDF-1.4 test", "application/pdf")
        for name in ("identityProof", "companyIdentityProof", "incorporationCertificate", "bankDocument")
    }


@pytest.fixture
def api_client(store, storage, listings, verifier):
    """TestClient wired to the in-memory backends."""

    from fastapi.testclient import TestClient

    from api.dependencies import get_document_storage, get_listing_repository, get_store, get_token_verifier
    from api.main import app

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_document_storage] = lambda: storage
    app.dependency_overrides[get_listing_repository] = lambda: listings
    app.dependency_overrides[get_token_verifier] = lambda: verifier
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.clear()
