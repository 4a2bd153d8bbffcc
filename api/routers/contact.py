"""
Contact and identity API Endpoints.
"""

from fastapi import APIRouter, Depends

from api.dependencies import get_current_user, get_store
from api.models import ContactRequest, MeResponse, SuccessResponse
from domain.user import AuthenticatedUser
from repositories.kv_store import KeyValueStore
from services.contact_service import submit_contact

router = APIRouter()


@router.post(
    "/contact",
    response_model=SuccessResponse,
    summary="Submit Contact Form",
)
def post_contact(request: ContactRequest, store: KeyValueStore = Depends(get_store)):
    submit_contact(store, request.model_dump(by_alias=True))
    return SuccessResponse(message="Contact form submitted successfully")


@router.get(
    "/me",
    response_model=MeResponse,
    summary="Current User",
    description="Identity and server-issued role of the caller; dashboards route on the role.",
)
def get_me(user: AuthenticatedUser = Depends(get_current_user)):
    return MeResponse(user_id=user.user_id, email=user.email, role=user.role.value)
