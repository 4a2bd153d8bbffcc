"""
Company registration workflow.

Handles:
- Server-side validation of all three wizard steps (the client-side check is
  advisory only)
- Uploading KYC/bank documents to object storage, all-or-nothing
- Persisting the registration record (one per user, resubmission overwrites)
- Recording an ownership entry per uploaded document
- Redacted reads and owner-only document links
- Operator review (SUBMITTED -> APPROVED | REJECTED)

Storage layout:
    {user_id}/{field_name}_{millis}.{ext}   in the documents bucket
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from domain.errors import (
    Forbidden,
    InternalError,
    NotFound,
    RegistrationLocked,
    UploadError,
    ValidationError,
)
from domain.registration import (
    DOCUMENT_FIELDS,
    Address,
    BankDetails,
    CompanyDetails,
    CompanyRegistration,
    KycDetails,
    RegistrationStatus,
    StoredDocument,
    missing_required_fields,
)
from domain.time import epoch_millis, utc_now
from domain.user import AuthenticatedUser
from repositories.kv_store import KeyValueStore
from repositories.registration_repository import (
    delete_document_owner,
    get_document_owner,
    get_registration,
    put_document_owner,
    put_registration,
)
from repositories.storage_repository import DocumentStorage

logger = logging.getLogger(__name__)

ONE_YEAR_SECONDS: int = 60 * 60 * 24 * 365
ONE_HOUR_SECONDS: int = 60 * 60

_EXTENSION_RE = re.compile(r"^[A-Za-z0-9]{1,10}$")


@dataclass(frozen=True, slots=True)
class RegistrationPolicy:
    """
    Deployment choices for the workflow.

    allow_resubmit_after_approval: whether an APPROVED registration may be
    resubmitted (which puts it back to SUBMITTED). Off by default.
    """
    allow_resubmit_after_approval: bool = False
    signed_url_ttl_seconds: int = ONE_YEAR_SECONDS
    document_url_ttl_seconds: int = ONE_HOUR_SECONDS


@dataclass(frozen=True, slots=True)
class DocumentUpload:
    """One file part of a registration submission."""
    field_name: str
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


@dataclass(frozen=True, slots=True)
class RegistrationLookup:
    exists: bool
    registration: Optional[CompanyRegistration] = None


@dataclass(frozen=True, slots=True)
class SubmissionResult:
    registration_id: str
    uploaded_documents: List[str] = field(default_factory=list)


def _text(form_data: Mapping[str, Any], name: str) -> str:
    value = form_data.get(name)
    return "" if value is None else str(value).strip()


def _extension(filename: str) -> str:
    _, dot, ext = filename.rpartition(".")
    if dot and _EXTENSION_RE.match(ext):
        return ext.lower()
    return "bin"


def storage_path(user_id: str, field_name: str, filename: str, millis: int) -> str:
    return f"{user_id}/{field_name}_{millis}.{_extension(filename)}"


def check_existing(store: KeyValueStore, user_id: str) -> RegistrationLookup:
    """The caller's registration, bank account number masked."""

    registration = get_registration(store, user_id)
    if registration is None:
        return RegistrationLookup(exists=False)
    return RegistrationLookup(exists=True, registration=registration.redacted())


def _present_documents(documents: Mapping[str, DocumentUpload]) -> Dict[str, DocumentUpload]:
    return {
        name: documents[name]
        for name in DOCUMENT_FIELDS
        if name in documents and documents[name].content
    }


def _upload_millis(
    store: KeyValueStore,
    user_id: str,
    documents: Mapping[str, DocumentUpload],
    uploaded_at: datetime,
) -> int:
    """First millisecond at or after `uploaded_at` whose storage paths are all unused."""

    millis = epoch_millis(uploaded_at)
    while any(
        get_document_owner(store, storage_path(user_id, name, upload.filename, millis)) is not None
        for name, upload in documents.items()
    ):
        millis += 1
    return millis


def _upload_documents(
    store: KeyValueStore,
    storage: DocumentStorage,
    user_id: str,
    documents: Mapping[str, DocumentUpload],
    policy: RegistrationPolicy,
) -> Dict[str, StoredDocument]:
    """
    Upload every document or none.

    On the first failure, already-uploaded objects are removed and UploadError
    names the failing field.
    """

    uploaded_at = utc_now()
    millis = _upload_millis(store, user_id, documents, uploaded_at)
    stored: Dict[str, StoredDocument] = {}

    for field_name, upload in documents.items():
        path = storage_path(user_id, field_name, upload.filename, millis)
        try:
            storage.upload(path, upload.content, upload.content_type)
            signed_url = storage.create_signed_url(path, policy.signed_url_ttl_seconds)
        except InternalError as e:
            logger.error(
                "Registration document upload failed",
                extra={"user_id": user_id, "field_name": field_name, "reason": str(e)},
            )
            _discard_uploads(storage, [path, *(doc.file_name for doc in stored.values())])
            raise UploadError(field_name, e.message) from e

        stored[field_name] = StoredDocument(
            file_name=path,
            original_name=upload.filename,
            signed_url=signed_url,
            uploaded_at=uploaded_at,
        )

    return stored


def _discard_uploads(storage: DocumentStorage, paths: List[str]) -> None:
    try:
        storage.remove(paths)
    except InternalError:
        logger.exception("Failed to remove orphaned registration documents", extra={"paths": paths})


def _build_registration(
    user: AuthenticatedUser,
    form_data: Mapping[str, Any],
    documents: Mapping[str, StoredDocument],
) -> CompanyRegistration:
    now = utc_now()
    return CompanyRegistration(
        user_id=user.user_id,
        user_email=user.email,
        company=CompanyDetails(
            company_name=_text(form_data, "companyName"),
            company_contact=_text(form_data, "companyContact"),
            full_name=_text(form_data, "fullName"),
            company_size=_text(form_data, "companySize"),
            gstin=_text(form_data, "gstin"),
            designation=_text(form_data, "designation"),
            address=Address(
                address_line1=_text(form_data, "addressLine1"),
                address_line2=_text(form_data, "addressLine2"),
                pincode=_text(form_data, "pincode"),
                country=_text(form_data, "country"),
                state=_text(form_data, "state"),
                city=_text(form_data, "city"),
            ),
        ),
        kyc=KycDetails(entity_type=_text(form_data, "entityType"), documents=dict(documents)),
        bank=BankDetails(
            account_name=_text(form_data, "accountName"),
            account_number=_text(form_data, "accountNumber"),
            bank_name=_text(form_data, "bankName"),
            ifsc_code=_text(form_data, "ifscCode"),
            branch_name=_text(form_data, "branchName"),
            swift_code=_text(form_data, "swiftCode"),
            bank_city=_text(form_data, "bankCity"),
            bank_country=_text(form_data, "bankCountry"),
        ),
        status=RegistrationStatus.SUBMITTED,
        submitted_at=now,
        last_updated=now,
    )


def submit_registration(
    store: KeyValueStore,
    storage: DocumentStorage,
    user: AuthenticatedUser,
    form_data: Mapping[str, Any],
    documents: Mapping[str, DocumentUpload],
    policy: RegistrationPolicy = RegistrationPolicy(),
) -> SubmissionResult:
    """
    Validate, upload and persist a full registration submission.

    Any previous record for the user is replaced and the status is forced to
    SUBMITTED. Nothing is persisted unless every document uploads.

    Raises:
        ValidationError: required fields or mandatory documents missing
        RegistrationLocked: already approved and resubmission is disabled
        UploadError: a document could not be stored (names the field)
        InternalError: the record could not be persisted
    """

    present = _present_documents(documents)

    # Document presence comes only from real file parts, never from JSON fields.
    merged: Dict[str, Any] = dict(form_data)
    for name in DOCUMENT_FIELDS:
        merged[name] = name in present

    missing = missing_required_fields(merged)
    if missing:
        raise ValidationError.missing(missing)

    previous = get_registration(store, user.user_id)
    if (
        previous is not None
        and previous.status is RegistrationStatus.APPROVED
        and not policy.allow_resubmit_after_approval
    ):
        raise RegistrationLocked("Company registration is already approved")

    stored_documents = _upload_documents(store, storage, user.user_id, present, policy)
    registration = _build_registration(user, form_data, stored_documents)

    written: List[str] = []
    try:
        for field_name, document in stored_documents.items():
            put_document_owner(store, document.file_name, user.user_id, field_name)
            written.append(document.file_name)
        put_registration(store, registration)
    except InternalError:
        for file_name in written:
            try:
                delete_document_owner(store, file_name)
            except InternalError:
                logger.exception("Failed to remove document ownership record", extra={"path": file_name})
        _discard_uploads(storage, [doc.file_name for doc in stored_documents.values()])
        raise

    logger.info(
        "Company registration submitted",
        extra={
            "registration_id": registration.registration_id,
            "user_id": user.user_id,
            "resubmission": previous is not None,
            "documents": list(stored_documents),
        },
    )
    return SubmissionResult(
        registration_id=registration.registration_id,
        uploaded_documents=list(stored_documents),
    )


def get_document_url(
    store: KeyValueStore,
    storage: DocumentStorage,
    user_id: str,
    file_name: str,
    policy: RegistrationPolicy = RegistrationPolicy(),
) -> str:
    """
    Short-lived signed URL for one of the caller's own documents.

    Ownership is checked against the ownership index. Unknown files are
    refused the same way as other users' files.
    """

    owner = get_document_owner(store, file_name)
    if owner is None or owner != user_id:
        logger.warning("Document access denied", extra={"user_id": user_id, "path": file_name})
        raise Forbidden("Access denied")

    return storage.create_signed_url(file_name, policy.document_url_ttl_seconds)


def review_registration(
    store: KeyValueStore, user_id: str, decision: RegistrationStatus
) -> CompanyRegistration:
    """Operator decision on a SUBMITTED registration."""

    registration = get_registration(store, user_id)
    if registration is None:
        raise NotFound(f"No company registration found for user {user_id}")

    try:
        reviewed = registration.with_status(decision, utc_now())
    except ValueError as e:
        raise ValidationError(str(e), ["status"]) from e

    put_registration(store, reviewed)
    logger.info(
        "Company registration reviewed",
        extra={"user_id": user_id, "status": decision.value},
    )
    return reviewed.redacted()


__all__ = [
    "RegistrationPolicy",
    "DocumentUpload",
    "RegistrationLookup",
    "SubmissionResult",
    "storage_path",
    "check_existing",
    "submit_registration",
    "get_document_url",
    "review_registration",
]
