"""
Seller Listings API Endpoints.

Owner-scoped listing management plus the public list of active listings.
"""

from typing import List

from fastapi import APIRouter, Depends

from api.dependencies import get_current_user, get_listing_repository
from api.models import CreateListingRequest, ListingResponse, SuccessResponse
from domain.user import AuthenticatedUser
from repositories.listing_repository import ListingRepository
from services.listing_service import (
    create_seller_listing,
    delete_seller_listing,
    list_active_seller_listings,
    list_seller_listings_by_user,
)

router = APIRouter()


@router.get(
    "/seller-listings",
    response_model=List[ListingResponse],
    summary="My Listings",
    description="The caller's listings, newest first.",
)
def get_my_listings(
    user: AuthenticatedUser = Depends(get_current_user),
    repo: ListingRepository = Depends(get_listing_repository),
):
    return [ListingResponse.from_domain(listing) for listing in list_seller_listings_by_user(repo, user.user_id)]


@router.get(
    "/seller-listings/active",
    response_model=List[ListingResponse],
    summary="Active Listings",
)
def get_active_listings(repo: ListingRepository = Depends(get_listing_repository)):
    return [ListingResponse.from_domain(listing) for listing in list_active_seller_listings(repo)]


@router.post(
    "/seller-listings",
    response_model=ListingResponse,
    summary="Create Listing",
)
def create_listing(
    request: CreateListingRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    repo: ListingRepository = Depends(get_listing_repository),
):
    return ListingResponse.from_domain(create_seller_listing(repo, user.user_id, request.model_dump()))


@router.delete(
    "/seller-listings/{listing_id}",
    response_model=SuccessResponse,
    summary="Delete Listing",
    description="Delete one of the caller's listings (403 for anyone else's).",
)
def delete_listing(
    listing_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    repo: ListingRepository = Depends(get_listing_repository),
):
    delete_seller_listing(repo, user.user_id, listing_id)
    return SuccessResponse(message="Listing deleted")
