"""
Purchases API Endpoints.

Buying credits, and the buyer's view of the ledger: portfolio, purchase
history and platform-wide statistics.
"""

from typing import List

from fastapi import APIRouter, Depends

from api.config import Settings, get_settings
from api.dependencies import get_current_user, get_store
from api.models import (
    PlatformStatsResponse,
    PortfolioResponse,
    PurchaseCreditsRequest,
    PurchaseCreditsResponse,
    PurchaseRecord,
)
from domain.user import AuthenticatedUser
from repositories.kv_store import KeyValueStore
from services.portfolio_service import get_platform_stats, get_user_portfolio, list_user_purchases
from services.purchase_service import PurchaseRequest, execute_purchase

router = APIRouter()


@router.post(
    "/purchase-credits",
    response_model=PurchaseCreditsResponse,
    summary="Purchase Credits",
    description="Buy carbon credits from a project (all-or-nothing).",
)
def purchase_credits(
    request: PurchaseCreditsRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    store: KeyValueStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    """
    Purchase carbon credits.

    **Process:**
    1. Validates the request (400 on missing fields or quantity <= 0)
    2. Reserves the credits on the project (404 unknown project, 400 not enough credits)
    3. Records the purchase at the project's current price
    4. Updates the buyer's portfolio and platform statistics

    If any step after the reservation fails, everything is undone.

    **Example request:**
    ```json
    {"projectId": "1", "quantity": 25}
    ```
    """
    purchase = execute_purchase(
        store,
        PurchaseRequest(project_id=request.project_id, quantity=request.quantity, user_id=user.user_id),
        max_retries=settings.purchase_max_retries,
    )
    return PurchaseCreditsResponse(
        purchase=PurchaseRecord.from_domain(purchase),
        message=f"Successfully purchased {purchase.quantity} carbon credits",
    )


@router.get(
    "/user-portfolio",
    response_model=PortfolioResponse,
    summary="Get Portfolio",
    description="The caller's holdings. All zero if they have not bought anything.",
)
def get_portfolio(
    user: AuthenticatedUser = Depends(get_current_user),
    store: KeyValueStore = Depends(get_store),
):
    return PortfolioResponse.from_domain(get_user_portfolio(store, user.user_id))


@router.get(
    "/user-purchases",
    response_model=List[PurchaseRecord],
    summary="List Purchases",
    description="The caller's purchases, newest first.",
)
def get_purchases(
    user: AuthenticatedUser = Depends(get_current_user),
    store: KeyValueStore = Depends(get_store),
):
    return [PurchaseRecord.from_domain(purchase) for purchase in list_user_purchases(store, user.user_id)]


@router.get(
    "/stats",
    response_model=PlatformStatsResponse,
    summary="Platform Statistics",
)
def get_stats(store: KeyValueStore = Depends(get_store)):
    return PlatformStatsResponse.from_domain(get_platform_stats(store))
