"""
Tests for the HTTP surface (`api/`).

Covers:
- Authentication (missing / malformed / unknown token)
- Error body shape and status codes
- Purchase round trip through the API, amounts as decimal strings
- Multipart company registration and owner-only document links
- Seller listing ownership
"""

from __future__ import annotations

import json
from decimal import Decimal

from conftest import valid_form

AUTH_A = {"Authorization": "Bearer token-a"}
AUTH_B = {"Authorization": "Bearer token-b"}


def _files(names=("identityProof", "companyIdentityProof", "incorporationCertificate", "bankDocument")):
    return {name: (f"{name}.pdf", b"%PDF-1.4 test", "application/pdf") for name in names}


def test_health(api_client) -> None:
    response = api_client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_unknown_route(api_client) -> None:
    response = api_client.get("/api/v1/nothing-here")

    assert response.status_code == 404
    assert response.json() == {"error": "Route not found"}


def test_missing_authorization_header(api_client) -> None:
    response = api_client.get("/api/v1/user-portfolio")

    assert response.status_code == 401
    assert response.json() == {"error": "Authorization header required"}


def test_invalid_token(api_client) -> None:
    for header in ("Bearer nope", "Basic token-a", "Bearer "):
        response = api_client.get("/api/v1/user-portfolio", headers={"Authorization": header})
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized - Invalid token"}


def test_me_returns_role(api_client) -> None:
    response = api_client.get("/api/v1/me", headers=AUTH_B)

    assert response.status_code == 200
    assert response.json() == {"user_id": "user-b", "email": "b@example.com", "role": "project_developer"}


def test_unknown_project_is_404(api_client) -> None:
    response = api_client.get("/api/v1/projects/missing")

    assert response.status_code == 404
    assert response.json() == {"error": "Project not found"}


def test_purchase_round_trip(api_client, project) -> None:
    response = api_client.post(
        "/api/v1/purchase-credits",
        json={"projectId": project.project_id, "quantity": 10},
        headers=AUTH_A,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Successfully purchased 10 carbon credits"
    assert body["purchase"]["user_id"] == "user-a"
    assert body["purchase"]["credits_purchased"] == 10
    assert isinstance(body["purchase"]["total_amount"], str)
    assert Decimal(body["purchase"]["total_amount"]) == Decimal("170")

    detail = api_client.get(f"/api/v1/projects/{project.project_id}").json()
    assert detail["credits_available"] == 90

    portfolio = api_client.get("/api/v1/user-portfolio", headers=AUTH_A).json()
    assert portfolio["total_credits"] == 10
    assert Decimal(portfolio["total_spent"]) == Decimal("170")
    assert portfolio["purchases"] == [body["purchase"]["id"]]

    purchases = api_client.get("/api/v1/user-purchases", headers=AUTH_A).json()
    assert [p["id"] for p in purchases] == [body["purchase"]["id"]]

    assert api_client.get("/api/v1/stats").json()["total_credits_sold"] == 10


def test_purchase_ignores_user_id_in_body(api_client, project) -> None:
    response = api_client.post(
        "/api/v1/purchase-credits",
        json={"projectId": project.project_id, "quantity": 1, "userId": "user-b"},
        headers=AUTH_A,
    )

    assert response.json()["purchase"]["user_id"] == "user-a"


def test_purchase_errors(api_client, project) -> None:
    too_many = api_client.post(
        "/api/v1/purchase-credits",
        json={"projectId": project.project_id, "quantity": 101},
        headers=AUTH_A,
    )
    assert too_many.status_code == 400
    assert too_many.json()["error"].startswith("Not enough credits available")

    missing = api_client.post("/api/v1/purchase-credits", json={"quantity": 1}, headers=AUTH_A)
    assert missing.status_code == 400
    assert "projectId" in missing.json()["error"]

    zero = api_client.post(
        "/api/v1/purchase-credits",
        json={"projectId": project.project_id, "quantity": 0},
        headers=AUTH_A,
    )
    assert zero.status_code == 400

    unknown = api_client.post(
        "/api/v1/purchase-credits",
        json={"projectId": "missing", "quantity": 1},
        headers=AUTH_A,
    )
    assert unknown.status_code == 404


def test_submit_project(api_client) -> None:
    response = api_client.post(
        "/api/v1/projects",
        json={
            "name": "Seagrass Revival",
            "location": "Odisha, India",
            "type": "Restoration",
            "price": 18,
            "certification": "Gold Standard",
        },
        headers=AUTH_B,
    )

    assert response.status_code == 200
    assert response.json()["project"]["status"] == "pending_verification"

    incomplete = api_client.post("/api/v1/projects", json={"name": "x"}, headers=AUTH_B)
    assert incomplete.status_code == 400


def test_contact(api_client) -> None:
    ok = api_client.post(
        "/api/v1/contact",
        json={"name": "Asha", "email": "a@example.com", "subject": "Hi", "message": "Hello", "inquiryType": "general"},
    )
    assert ok.status_code == 200
    assert ok.json()["success"] is True

    missing = api_client.post("/api/v1/contact", json={"name": "Asha"})
    assert missing.status_code == 400


def test_registration_round_trip(api_client, storage) -> None:
    lookup = api_client.get("/api/v1/company-registration", headers=AUTH_A).json()
    assert lookup == {"exists": False, "registration": None, "message": "No company registration found"}

    response = api_client.post(
        "/api/v1/company-registration",
        data={"registrationData": json.dumps(valid_form())},
        files=_files(),
        headers=AUTH_A,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["registrationId"] == "company_registration:user-a"
    assert sorted(body["uploadedDocuments"]) == sorted(_files())

    lookup = api_client.get("/api/v1/company-registration", headers=AUTH_A).json()
    assert lookup["exists"] is True
    registration = lookup["registration"]
    assert registration["status"] == "submitted"
    assert registration["bank_details"]["accountNumber"] == "********9012"

    path = registration["kyc_details"]["documents"]["identityProof"]["fileName"]
    own = api_client.get(f"/api/v1/company-registration/document/{path}", headers=AUTH_A)
    assert own.status_code == 200
    assert path in own.json()["signedUrl"]

    other = api_client.get(f"/api/v1/company-registration/document/{path}", headers=AUTH_B)
    assert other.status_code == 403
    assert other.json() == {"error": "Access denied"}


def test_registration_missing_document(api_client, storage) -> None:
    response = api_client.post(
        "/api/v1/company-registration",
        data={"registrationData": json.dumps(valid_form())},
        files=_files(("identityProof", "incorporationCertificate", "bankDocument")),
        headers=AUTH_A,
    )

    assert response.status_code == 400
    assert "companyIdentityProof" in response.json()["error"]
    assert storage.objects == {}


def test_registration_bad_json(api_client) -> None:
    response = api_client.post(
        "/api/v1/company-registration",
        data={"registrationData": "{not json"},
        files=_files(),
        headers=AUTH_A,
    )

    assert response.status_code == 400


def test_listing_ownership(api_client) -> None:
    created = api_client.post(
        "/api/v1/seller-listings",
        json={
            "project_name": "Mangrove Belt",
            "type": "Restoration",
            "location": "Kerala, India",
            "price_per_credit": "16.5",
            "quantity": 200,
        },
        headers=AUTH_A,
    )
    assert created.status_code == 200
    listing_id = created.json()["id"]
    assert created.json()["price_per_credit"] == "16.5"

    assert [listing["id"] for listing in api_client.get("/api/v1/seller-listings/active").json()] == [listing_id]
    assert api_client.get("/api/v1/seller-listings", headers=AUTH_B).json() == []

    forbidden = api_client.delete(f"/api/v1/seller-listings/{listing_id}", headers=AUTH_B)
    assert forbidden.status_code == 403

    deleted = api_client.delete(f"/api/v1/seller-listings/{listing_id}", headers=AUTH_A)
    assert deleted.status_code == 200
    assert api_client.get("/api/v1/seller-listings", headers=AUTH_A).json() == []
