"""
Purchase repository (persistence).

Purchases are append-only ledger entries stored under
`purchase:{millis}:{user_id}`. This module only inserts, fetches and (for
compensation of a failed purchase) removes them; it never updates one.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Tuple

from domain.purchase import Purchase, PurchaseStatus
from domain.time import parse_utc_datetime, to_iso_utc
from repositories.kv_store import KeyValueStore

_PURCHASE_PREFIX: str = "purchase:"


def _row_to_purchase(row: Mapping[str, Any]) -> Purchase:
    """Convert a stored JSON value into a Purchase."""

    return Purchase(
        purchase_id=str(row["id"]),
        user_id=str(row["user_id"]),
        project_id=str(row["project_id"]),
        project_name=str(row["project_name"]),
        quantity=int(row["credits_purchased"]),
        price_per_credit=Decimal(str(row["price_per_credit"])),
        total_amount=Decimal(str(row["total_amount"])),
        purchased_at=parse_utc_datetime(row["purchase_date"]),
        certificate_id=str(row["certificate_id"]),
        status=PurchaseStatus(row.get("status") or PurchaseStatus.COMPLETED.value),
    )


def purchase_to_row(purchase: Purchase) -> Dict[str, Any]:
    return {
        "id": purchase.purchase_id,
        "user_id": purchase.user_id,
        "project_id": purchase.project_id,
        "project_name": purchase.project_name,
        "credits_purchased": purchase.quantity,
        "price_per_credit": str(purchase.price_per_credit),
        "total_amount": str(purchase.total_amount),
        "purchase_date": to_iso_utc(purchase.purchased_at, name="purchase_date"),
        "status": purchase.status.value,
        "certificate_id": purchase.certificate_id,
    }


def insert_purchase(store: KeyValueStore, purchase: Purchase) -> bool:
    """Append a purchase. Returns False if its key is already taken."""

    return store.compare_and_set(purchase.purchase_id, purchase_to_row(purchase), None)


def delete_purchase(store: KeyValueStore, purchase_id: str) -> None:
    store.delete(purchase_id)


def _ledger_order(purchase: Purchase) -> Tuple[datetime, str]:
    # Same-timestamp purchases take later ids (see purchase_service._append_purchase).
    return purchase.purchased_at, purchase.purchase_id


def list_purchases(store: KeyValueStore) -> List[Purchase]:
    """Every purchase on the platform, oldest first."""

    purchases = [_row_to_purchase(stored.value) for stored in store.get_by_prefix(_PURCHASE_PREFIX)]
    return sorted(purchases, key=_ledger_order)


def list_purchases_by_user(store: KeyValueStore, user_id: str) -> List[Purchase]:
    """A user's purchase history, newest first."""

    purchases = [p for p in list_purchases(store) if p.user_id == user_id]
    return sorted(purchases, key=_ledger_order, reverse=True)


__all__ = [
    "purchase_to_row",
    "insert_purchase",
    "delete_purchase",
    "list_purchases",
    "list_purchases_by_user",
]
