"""
Company Registration API Endpoints.

Three-step onboarding submission (multipart), status lookup and document
access for the registering company.
"""

import json
from typing import Dict, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from api.dependencies import (
    get_current_user,
    get_document_storage,
    get_registration_policy,
    get_store,
)
from api.models import DocumentUrlResponse, RegistrationLookupResponse, RegistrationSubmitResponse
from domain.errors import ValidationError
from domain.user import AuthenticatedUser
from repositories.kv_store import KeyValueStore
from repositories.registration_repository import registration_to_row
from repositories.storage_repository import DocumentStorage
from services.registration_service import (
    DocumentUpload,
    RegistrationPolicy,
    check_existing,
    get_document_url,
    submit_registration,
)

router = APIRouter()


def _to_upload(field_name: str, upload: Optional[UploadFile]) -> Optional[DocumentUpload]:
    if upload is None:
        return None
    content = upload.file.read()
    if not content:
        return None
    return DocumentUpload(
        field_name=field_name,
        filename=upload.filename or field_name,
        content=content,
        content_type=upload.content_type or "application/octet-stream",
    )


@router.post(
    "/company-registration",
    response_model=RegistrationSubmitResponse,
    summary="Submit Company Registration",
    description="Submit (or resubmit) the company onboarding form with KYC and bank documents.",
)
def submit_company_registration(
    registration_data: str = Form(..., alias="registrationData"),
    identity_proof: Optional[UploadFile] = File(None, alias="identityProof"),
    company_identity_proof: Optional[UploadFile] = File(None, alias="companyIdentityProof"),
    incorporation_certificate: Optional[UploadFile] = File(None, alias="incorporationCertificate"),
    memorandum_of_association: Optional[UploadFile] = File(None, alias="memorandumOfAssociation"),
    articles_of_association: Optional[UploadFile] = File(None, alias="articlesOfAssociation"),
    bank_document: Optional[UploadFile] = File(None, alias="bankDocument"),
    user: AuthenticatedUser = Depends(get_current_user),
    store: KeyValueStore = Depends(get_store),
    storage: DocumentStorage = Depends(get_document_storage),
    policy: RegistrationPolicy = Depends(get_registration_policy),
):
    """
    Submit a company registration.

    **Form parts:**
    - `registrationData`: JSON object with the company, KYC and bank fields
    - up to six files: identityProof, companyIdentityProof, incorporationCertificate
      (mandatory), memorandumOfAssociation, articlesOfAssociation, bankDocument
      (mandatory)

    Documents are uploaded all-or-nothing; a failed upload leaves no record.
    """
    try:
        form_data = json.loads(registration_data)
    except json.JSONDecodeError:
        raise ValidationError("registrationData must be valid JSON", ["registrationData"]) from None
    if not isinstance(form_data, dict):
        raise ValidationError("registrationData must be a JSON object", ["registrationData"])

    parts = {
        "identityProof": identity_proof,
        "companyIdentityProof": company_identity_proof,
        "incorporationCertificate": incorporation_certificate,
        "memorandumOfAssociation": memorandum_of_association,
        "articlesOfAssociation": articles_of_association,
        "bankDocument": bank_document,
    }
    documents: Dict[str, DocumentUpload] = {}
    for field_name, upload in parts.items():
        document = _to_upload(field_name, upload)
        if document is not None:
            documents[field_name] = document

    result = submit_registration(store, storage, user, form_data, documents, policy)
    return RegistrationSubmitResponse(
        registration_id=result.registration_id,
        uploaded_documents=result.uploaded_documents,
    )


@router.get(
    "/company-registration",
    response_model=RegistrationLookupResponse,
    summary="Get Company Registration",
    description="The caller's registration, bank account number masked.",
)
def get_company_registration(
    user: AuthenticatedUser = Depends(get_current_user),
    store: KeyValueStore = Depends(get_store),
):
    lookup = check_existing(store, user.user_id)
    if not lookup.exists:
        return RegistrationLookupResponse(exists=False, message="No company registration found")
    return RegistrationLookupResponse(exists=True, registration=registration_to_row(lookup.registration))


@router.get(
    "/company-registration/document/{filename:path}",
    response_model=DocumentUrlResponse,
    summary="Get Registration Document Link",
    description="Short-lived signed URL for one of the caller's own documents.",
)
def get_company_registration_document(
    filename: str,
    user: AuthenticatedUser = Depends(get_current_user),
    store: KeyValueStore = Depends(get_store),
    storage: DocumentStorage = Depends(get_document_storage),
    policy: RegistrationPolicy = Depends(get_registration_policy),
):
    return DocumentUrlResponse(signed_url=get_document_url(store, storage, user.user_id, filename, policy))
