"""
Domain: buyer portfolios and platform-wide statistics.

Both are aggregates over the purchase ledger. They are stored materialized for
cheap reads, but `Portfolio.from_purchases` can always rebuild a portfolio from
the ledger, which is the source of truth.

Invariant: portfolio.total_credits == sum(p.quantity for p in the user's purchases).
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional, Tuple

from .purchase import Purchase
from .time import require_utc_timestamp


@dataclass(frozen=True, slots=True)
class Portfolio:
    user_id: str
    total_credits: int = 0
    total_spent: Decimal = Decimal("0")
    total_co2_offset: int = 0
    purchase_ids: Tuple[str, ...] = ()
    project_ids: Tuple[str, ...] = ()

    @property
    def active_projects(self) -> int:
        """Count of distinct projects the user holds credits in."""
        return len(set(self.project_ids))

    @classmethod
    def empty(cls, user_id: str) -> "Portfolio":
        return cls(user_id=user_id)

    @classmethod
    def from_purchases(cls, user_id: str, purchases: Iterable[Purchase]) -> "Portfolio":
        """Fold the user's purchases (oldest first) into a portfolio."""

        portfolio = cls.empty(user_id)
        for purchase in sorted(purchases, key=lambda p: (p.purchased_at, p.purchase_id)):
            portfolio = portfolio.record(purchase)
        return portfolio

    def record(self, purchase: Purchase) -> "Portfolio":
        if purchase.user_id != self.user_id:
            raise ValueError("purchase belongs to a different user")
        if purchase.purchase_id in self.purchase_ids:
            return self

        project_ids = self.project_ids
        if purchase.project_id not in project_ids:
            project_ids = project_ids + (purchase.project_id,)

        return replace(
            self,
            total_credits=self.total_credits + purchase.quantity,
            total_spent=self.total_spent + purchase.total_amount,
            # 1 credit == 1 tonne CO2e
            total_co2_offset=self.total_co2_offset + purchase.quantity,
            purchase_ids=self.purchase_ids + (purchase.purchase_id,),
            project_ids=project_ids,
        )

    def revert(self, purchase: Purchase, remaining: Iterable[Purchase] = ()) -> "Portfolio":
        """
        Undo `record(purchase)`.

        `remaining` are the user's other purchases; they decide whether the
        purchase's project is still held.
        """

        if purchase.purchase_id not in self.purchase_ids:
            return self

        still_held = any(
            p.project_id == purchase.project_id and p.purchase_id != purchase.purchase_id
            for p in remaining
        )
        project_ids = self.project_ids
        if not still_held:
            project_ids = tuple(pid for pid in project_ids if pid != purchase.project_id)

        return replace(
            self,
            total_credits=self.total_credits - purchase.quantity,
            total_spent=self.total_spent - purchase.total_amount,
            total_co2_offset=self.total_co2_offset - purchase.quantity,
            purchase_ids=tuple(pid for pid in self.purchase_ids if pid != purchase.purchase_id),
            project_ids=project_ids,
        )


@dataclass(frozen=True, slots=True)
class PlatformStats:
    """Platform-wide impact counters (singleton)."""

    total_credits_sold: int = 0
    total_co2_offset: int = 0
    active_projects: int = 0
    countries_covered: int = 0
    communities_supported: int = 0
    ecosystems_protected: int = 0
    last_updated: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.last_updated is not None:
            require_utc_timestamp("last_updated", self.last_updated)

    def record_sale(self, quantity: int, at: datetime) -> "PlatformStats":
        return replace(
            self,
            total_credits_sold=self.total_credits_sold + quantity,
            total_co2_offset=self.total_co2_offset + quantity,
            last_updated=at,
        )
