"""
Domain: credit purchases.

A Purchase is an append-only ledger entry. It snapshots the project's name and
price at purchase time; later price changes never affect past purchases.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

from .project import Project
from .time import epoch_millis, require_utc_timestamp


class PurchaseStatus(str, Enum):
    COMPLETED = "completed"


def purchase_key(millis: int, user_id: str) -> str:
    """Time-ordered storage key (and id) for a purchase."""

    return f"purchase:{millis}:{user_id}"


@dataclass(frozen=True, slots=True)
class Purchase:
    """Immutable record of one successful credit purchase."""

    purchase_id: str
    user_id: str
    project_id: str
    project_name: str
    quantity: int
    price_per_credit: Decimal
    total_amount: Decimal
    purchased_at: datetime
    certificate_id: str
    status: PurchaseStatus = PurchaseStatus.COMPLETED

    def __post_init__(self) -> None:
        require_utc_timestamp("purchased_at", self.purchased_at)
        if self.quantity <= 0:
            raise ValueError("quantity must be > 0")
        if self.total_amount != self.price_per_credit * self.quantity:
            raise ValueError("total_amount must equal quantity * price_per_credit")

    @classmethod
    def create(
        cls,
        project: Project,
        user_id: str,
        quantity: int,
        purchased_at: datetime,
        *,
        millis: int | None = None,
    ) -> "Purchase":
        """Build a purchase snapshotting the project's current price."""

        millis = epoch_millis(purchased_at) if millis is None else millis
        return cls(
            purchase_id=purchase_key(millis, user_id),
            user_id=user_id,
            project_id=project.project_id,
            project_name=project.name,
            quantity=quantity,
            price_per_credit=project.price,
            total_amount=project.price * quantity,
            purchased_at=purchased_at,
            certificate_id=f"cert:{millis}:{user_id}",
        )
