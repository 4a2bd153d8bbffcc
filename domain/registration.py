"""
Domain: company registration (seller/developer onboarding).

The onboarding wizard collects three steps:
1. Company details
2. KYC documents
3. Bank details

Status machine per user:
    (none) --submit--> SUBMITTED --review--> APPROVED | REJECTED
    REJECTED --submit--> SUBMITTED
    APPROVED --submit--> SUBMITTED only when resubmission after approval is enabled

Read paths must always go through `CompanyRegistration.redacted()` so the bank
account number never leaves the service unmasked.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .time import require_utc_timestamp


ENTITY_TYPES: Tuple[str, ...] = (
    "Private Limited Company",
    "Public Limited Company",
    "Limited Liability Partnership (LLP)",
    "Partnership Firm",
    "Sole Proprietorship",
    "NGO/Non-Profit",
    "Government Entity",
    "Other",
)

# Upload order is the order of this tuple.
DOCUMENT_FIELDS: Tuple[str, ...] = (
    "identityProof",
    "companyIdentityProof",
    "incorporationCertificate",
    "memorandumOfAssociation",
    "articlesOfAssociation",
    "bankDocument",
)

STEP_REQUIRED_FIELDS: Dict[int, Tuple[str, ...]] = {
    1: ("companyName", "companyContact", "addressLine1", "city", "country", "fullName"),
    2: ("identityProof", "companyIdentityProof", "incorporationCertificate", "entityType"),
    3: ("accountName", "accountNumber", "bankName", "ifscCode", "bankDocument"),
}


class RegistrationStatus(str, Enum):
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


def _is_present(value: Any) -> bool:
    if isinstance(value, str):
        return bool(value.strip())
    return bool(value)


def _missing_for_step(step: int, form_data: Mapping[str, Any]) -> List[str]:
    required = STEP_REQUIRED_FIELDS.get(step)
    if required is None:
        raise ValueError(f"Unknown registration step: {step}")
    missing = [name for name in required if not _is_present(form_data.get(name))]
    if step == 2 and "entityType" not in missing and str(form_data["entityType"]).strip() not in ENTITY_TYPES:
        missing.append("entityType")
    return missing


def step_is_valid(step: int, form_data: Mapping[str, Any]) -> bool:
    """
    Pure per-step check used by the wizard before advancing.

    File fields count as present when they hold a truthy handle; text fields
    holding only whitespace count as missing.
    Unknown steps are never valid.
    """

    if step not in STEP_REQUIRED_FIELDS:
        return False
    return not _missing_for_step(step, form_data)


def missing_required_fields(form_data: Mapping[str, Any]) -> List[str]:
    """Every field (across all steps) that blocks a full submission."""

    missing: List[str] = []
    for step in sorted(STEP_REQUIRED_FIELDS):
        missing.extend(_missing_for_step(step, form_data))
    return missing


def mask_account_number(account_number: Optional[str]) -> str:
    """
    Redact all but the last 4 characters.

    Numbers of 4 characters or fewer are fully masked.
    """

    if not account_number:
        return ""
    if len(account_number) <= 4:
        return "*" * len(account_number)
    return "*" * (len(account_number) - 4) + account_number[-4:]


@dataclass(frozen=True, slots=True)
class Address:
    address_line1: str
    city: str
    country: str
    address_line2: str = ""
    pincode: str = ""
    state: str = ""


@dataclass(frozen=True, slots=True)
class CompanyDetails:
    company_name: str
    company_contact: str
    full_name: str
    address: Address
    company_size: str = ""
    gstin: str = ""
    designation: str = ""


@dataclass(frozen=True, slots=True)
class StoredDocument:
    """A KYC/bank document held in object storage."""

    file_name: str  # storage path, "{user_id}/{field}_{millis}.{ext}"
    original_name: str
    signed_url: str
    uploaded_at: datetime

    def __post_init__(self) -> None:
        require_utc_timestamp("uploaded_at", self.uploaded_at)


@dataclass(frozen=True, slots=True)
class KycDetails:
    entity_type: str
    documents: Mapping[str, StoredDocument] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class BankDetails:
    account_name: str
    account_number: str
    bank_name: str
    ifsc_code: str
    branch_name: str = ""
    swift_code: str = ""
    bank_city: str = ""
    bank_country: str = ""


@dataclass(frozen=True, slots=True)
class CompanyRegistration:
    """One registration record per user, keyed by user id."""

    user_id: str
    company: CompanyDetails
    kyc: KycDetails
    bank: BankDetails
    status: RegistrationStatus
    submitted_at: datetime
    last_updated: datetime
    user_email: Optional[str] = None

    def __post_init__(self) -> None:
        require_utc_timestamp("submitted_at", self.submitted_at)
        require_utc_timestamp("last_updated", self.last_updated)

    @property
    def registration_id(self) -> str:
        return registration_key(self.user_id)

    def redacted(self) -> "CompanyRegistration":
        """Copy safe to return to callers: bank account number masked."""

        return replace(
            self,
            bank=replace(self.bank, account_number=mask_account_number(self.bank.account_number)),
        )

    def with_status(self, status: RegistrationStatus, at: datetime) -> "CompanyRegistration":
        """Review transition; only a SUBMITTED registration can be reviewed."""

        if self.status is not RegistrationStatus.SUBMITTED:
            raise ValueError(f"Cannot move registration from {self.status.value} to {status.value}")
        if status is RegistrationStatus.SUBMITTED:
            raise ValueError("Review must approve or reject")
        return replace(self, status=status, last_updated=at)


def registration_key(user_id: str) -> str:
    return f"company_registration:{user_id}"


def document_ownership_key(file_name: str) -> str:
    return f"document:{file_name}"
