"""
Company registration repository (persistence).

Keys:
- `company_registration:{user_id}` one registration record per user
- `document:{storage_path}` ownership index for uploaded documents

The ownership index is what authorizes document access; storage paths are
never trusted to encode ownership on their own.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from domain.registration import (
    Address,
    BankDetails,
    CompanyDetails,
    CompanyRegistration,
    KycDetails,
    RegistrationStatus,
    StoredDocument,
    document_ownership_key,
    registration_key,
)
from domain.time import parse_utc_datetime, to_iso_utc
from repositories.kv_store import KeyValueStore


def _document_to_row(document: StoredDocument) -> Dict[str, Any]:
    return {
        "fileName": document.file_name,
        "originalName": document.original_name,
        "signedUrl": document.signed_url,
        "uploadedAt": to_iso_utc(document.uploaded_at, name="uploadedAt"),
    }


def _row_to_document(row: Mapping[str, Any]) -> StoredDocument:
    return StoredDocument(
        file_name=str(row["fileName"]),
        original_name=str(row.get("originalName") or ""),
        signed_url=str(row.get("signedUrl") or ""),
        uploaded_at=parse_utc_datetime(row["uploadedAt"]),
    )


def registration_to_row(registration: CompanyRegistration) -> Dict[str, Any]:
    """Serialize to the stored record layout (also the API response layout)."""

    company = registration.company
    bank = registration.bank
    return {
        "id": registration.registration_id,
        "user_id": registration.user_id,
        "user_email": registration.user_email,
        "company_details": {
            "companyName": company.company_name,
            "companySize": company.company_size,
            "companyContact": company.company_contact,
            "gstin": company.gstin,
            "address": {
                "addressLine1": company.address.address_line1,
                "addressLine2": company.address.address_line2,
                "pincode": company.address.pincode,
                "country": company.address.country,
                "state": company.address.state,
                "city": company.address.city,
            },
            "contactPerson": {
                "fullName": company.full_name,
                "designation": company.designation,
            },
        },
        "kyc_details": {
            "entityType": registration.kyc.entity_type,
            "documents": {
                name: _document_to_row(document)
                for name, document in registration.kyc.documents.items()
            },
        },
        "bank_details": {
            "accountName": bank.account_name,
            "accountNumber": bank.account_number,
            "bankName": bank.bank_name,
            "branchName": bank.branch_name,
            "swiftCode": bank.swift_code,
            "ifscCode": bank.ifsc_code,
            "bankCity": bank.bank_city,
            "bankCountry": bank.bank_country,
        },
        "status": registration.status.value,
        "submitted_at": to_iso_utc(registration.submitted_at, name="submitted_at"),
        "last_updated": to_iso_utc(registration.last_updated, name="last_updated"),
    }


def _row_to_registration(row: Mapping[str, Any]) -> CompanyRegistration:
    company = row.get("company_details") or {}
    address = company.get("address") or {}
    contact = company.get("contactPerson") or {}
    kyc = row.get("kyc_details") or {}
    bank = row.get("bank_details") or {}

    return CompanyRegistration(
        user_id=str(row["user_id"]),
        user_email=row.get("user_email"),
        company=CompanyDetails(
            company_name=company.get("companyName") or "",
            company_contact=company.get("companyContact") or "",
            full_name=contact.get("fullName") or "",
            company_size=company.get("companySize") or "",
            gstin=company.get("gstin") or "",
            designation=contact.get("designation") or "",
            address=Address(
                address_line1=address.get("addressLine1") or "",
                address_line2=address.get("addressLine2") or "",
                pincode=address.get("pincode") or "",
                country=address.get("country") or "",
                state=address.get("state") or "",
                city=address.get("city") or "",
            ),
        ),
        kyc=KycDetails(
            entity_type=kyc.get("entityType") or "",
            documents={
                name: _row_to_document(document)
                for name, document in (kyc.get("documents") or {}).items()
            },
        ),
        bank=BankDetails(
            account_name=bank.get("accountName") or "",
            account_number=bank.get("accountNumber") or "",
            bank_name=bank.get("bankName") or "",
            ifsc_code=bank.get("ifscCode") or "",
            branch_name=bank.get("branchName") or "",
            swift_code=bank.get("swiftCode") or "",
            bank_city=bank.get("bankCity") or "",
            bank_country=bank.get("bankCountry") or "",
        ),
        status=RegistrationStatus(row["status"]),
        submitted_at=parse_utc_datetime(row["submitted_at"]),
        last_updated=parse_utc_datetime(row["last_updated"]),
    )


def get_registration(store: KeyValueStore, user_id: str) -> Optional[CompanyRegistration]:
    stored = store.get(registration_key(user_id))
    return _row_to_registration(stored.value) if stored else None


def put_registration(store: KeyValueStore, registration: CompanyRegistration) -> None:
    """Write the registration, replacing any earlier submission (last write wins)."""

    store.set(registration.registration_id, registration_to_row(registration))


def put_document_owner(store: KeyValueStore, file_name: str, user_id: str, field_name: str) -> None:
    store.set(document_ownership_key(file_name), {"user_id": user_id, "field": field_name})


def get_document_owner(store: KeyValueStore, file_name: str) -> Optional[str]:
    stored = store.get(document_ownership_key(file_name))
    return str(stored.value["user_id"]) if stored else None


def delete_document_owner(store: KeyValueStore, file_name: str) -> None:
    store.delete(document_ownership_key(file_name))


__all__ = [
    "registration_to_row",
    "get_registration",
    "put_registration",
    "put_document_owner",
    "get_document_owner",
    "delete_document_owner",
]
