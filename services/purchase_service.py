"""
Purchase service for executing credit purchases.

Handles:
- Validation before any mutation (validate-then-mutate)
- Inventory reservation with an optimistic conditional write on the project
- Appending the immutable purchase record to the ledger
- Updating the buyer's portfolio and the platform statistics
- All-or-nothing: if a step after the reservation fails, every earlier step is
  undone in reverse order before the error is raised

Concurrency:
Every read-modify-write goes through `compare_and_set`, so two buyers racing for
the same credits cannot both decrement from the same starting value. The loser
re-reads, re-checks availability and either succeeds on the new value or fails
with InsufficientInventory.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple, TypeVar

from domain.errors import InternalError, MarketplaceError, NotFound, ValidationError
from domain.project import Project
from domain.purchase import Purchase
from domain.time import epoch_millis, utc_now
from repositories.kv_store import KeyValueStore
from repositories.portfolio_repository import (
    get_portfolio_versioned,
    get_stats_versioned,
    save_portfolio_if_unchanged,
    save_stats_if_unchanged,
)
from repositories.project_repository import get_project_versioned, save_project_if_unchanged
from repositories.purchase_repository import delete_purchase, insert_purchase, list_purchases_by_user

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES: int = 10

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class PurchaseRequest:
    """
    Request to buy `quantity` credits of one project.

    user_id always comes from the verified bearer token, never from the body.
    project_id and quantity may be None when the caller omitted them.
    """
    project_id: Optional[str]
    quantity: Optional[int]
    user_id: str


def _validate(request: PurchaseRequest) -> None:
    missing = [
        name
        for name, value in (
            ("projectId", request.project_id),
            ("quantity", request.quantity),
            ("userId", request.user_id),
        )
        if value is None or value == ""
    ]
    if missing:
        raise ValidationError.missing(missing)

    quantity = request.quantity
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationError("quantity must be a positive integer", ["quantity"])


def _update_with_retry(
    read: Callable[[], Tuple[T, Optional[int]]],
    apply: Callable[[T], T],
    write: Callable[[T, Optional[int]], bool],
    what: str,
    max_retries: int,
) -> T:
    """Optimistic read-modify-write loop. Returns the written value."""

    for _ in range(max_retries):
        current, version = read()
        updated = apply(current)
        if write(updated, version):
            return updated
        logger.info("Write conflict, retrying", extra={"target": what})
    raise InternalError(f"Failed to update {what}: too many concurrent writers")


def _reserve_inventory(store: KeyValueStore, request: PurchaseRequest, max_retries: int) -> Project:
    """
    Atomically take `quantity` credits from the project.

    Returns the project as it was read by the winning attempt; its price is the
    one the purchase is charged at.
    """

    for _ in range(max_retries):
        found = get_project_versioned(store, request.project_id)
        if found is None:
            raise NotFound(f"Project not found: {request.project_id}")

        project, version = found
        # Raises InsufficientInventory before anything is written.
        reserved = project.reserve(request.quantity)
        if save_project_if_unchanged(store, reserved, version):
            return project

        logger.info(
            "Inventory write conflict, retrying",
            extra={"project_id": request.project_id, "quantity": request.quantity},
        )

    raise InternalError(
        f"Failed to reserve credits on project {request.project_id}: too many concurrent writers"
    )


def _release_inventory(store: KeyValueStore, project_id: str, quantity: int, max_retries: int) -> None:
    def read() -> Tuple[Project, Optional[int]]:
        found = get_project_versioned(store, project_id)
        if found is None:
            raise InternalError(f"Failed to release credits: project {project_id} disappeared")
        return found

    _update_with_retry(
        read,
        lambda project: project.release(quantity),
        lambda project, version: save_project_if_unchanged(store, project, version),
        f"project {project_id}",
        max_retries,
    )


def _append_purchase(
    store: KeyValueStore, project: Project, request: PurchaseRequest, max_retries: int
) -> Purchase:
    purchased_at = utc_now()
    millis = epoch_millis(purchased_at)

    # Keys are time-ordered; two purchases by one user in the same millisecond
    # take the next free millisecond.
    for offset in range(max_retries):
        purchase = Purchase.create(
            project, request.user_id, request.quantity, purchased_at, millis=millis + offset
        )
        if insert_purchase(store, purchase):
            return purchase

    raise InternalError(f"Failed to record purchase for user {request.user_id}: key collision")


def _run_compensations(steps: List[Tuple[str, Callable[[], None]]], request: PurchaseRequest) -> None:
    for name, undo in reversed(steps):
        try:
            undo()
        except Exception:
            # Keep undoing the rest; the ledger can be reconciled afterwards.
            logger.exception(
                "Purchase compensation step failed",
                extra={"step": name, "project_id": request.project_id, "user_id": request.user_id},
            )


def execute_purchase(
    store: KeyValueStore,
    request: PurchaseRequest,
    *,
    max_retries: int = DEFAULT_MAX_RETRIES,
) -> Purchase:
    """
    Execute a purchase with all-or-nothing semantics.

    Process:
    1. Validate the request (ValidationError)
    2. Reserve inventory on the project (NotFound, InsufficientInventory)
    3. Append the purchase record, snapshotting the project's current price
    4. Record the purchase in the buyer's portfolio
    5. Add the quantity to platform statistics
    6. Return the purchase as confirmation

    Steps 1-2 fail without side effects. If any of steps 3-5 fails, the steps
    already applied are undone and the error is raised.

    Example:
        purchase = execute_purchase(store, PurchaseRequest("1", 10, user.user_id))
        print(f"Bought {purchase.quantity} credits for {purchase.total_amount}")
    """

    _validate(request)
    project = _reserve_inventory(store, request, max_retries)

    compensations: List[Tuple[str, Callable[[], None]]] = [
        (
            "release inventory",
            lambda: _release_inventory(store, request.project_id, request.quantity, max_retries),
        )
    ]

    try:
        purchase = _append_purchase(store, project, request, max_retries)
        compensations.append(("remove purchase record", lambda: delete_purchase(store, purchase.purchase_id)))

        _update_with_retry(
            lambda: get_portfolio_versioned(store, request.user_id),
            lambda portfolio: portfolio.record(purchase),
            lambda portfolio, version: save_portfolio_if_unchanged(store, portfolio, version),
            f"portfolio {request.user_id}",
            max_retries,
        )
        compensations.append(("revert portfolio", lambda: _revert_portfolio(store, purchase, max_retries)))

        _update_with_retry(
            lambda: get_stats_versioned(store),
            lambda stats: stats.record_sale(purchase.quantity, purchase.purchased_at),
            lambda stats, version: save_stats_if_unchanged(store, stats, version),
            "platform stats",
            max_retries,
        )
    except Exception as e:
        _run_compensations(compensations, request)
        logger.error(
            "Purchase rolled back",
            extra={"project_id": request.project_id, "user_id": request.user_id, "reason": str(e)},
        )
        if isinstance(e, MarketplaceError):
            raise
        raise InternalError(f"Failed to process purchase: {e}") from e

    logger.info(
        "Purchase completed",
        extra={
            "purchase_id": purchase.purchase_id,
            "project_id": purchase.project_id,
            "user_id": purchase.user_id,
            "quantity": purchase.quantity,
        },
    )
    return purchase


def _revert_portfolio(store: KeyValueStore, purchase: Purchase, max_retries: int) -> None:
    remaining = list_purchases_by_user(store, purchase.user_id)
    _update_with_retry(
        lambda: get_portfolio_versioned(store, purchase.user_id),
        lambda portfolio: portfolio.revert(purchase, remaining),
        lambda portfolio, version: save_portfolio_if_unchanged(store, portfolio, version),
        f"portfolio {purchase.user_id}",
        max_retries,
    )


__all__ = [
    "DEFAULT_MAX_RETRIES",
    "PurchaseRequest",
    "execute_purchase",
]
