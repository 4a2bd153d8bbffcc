"""
Portfolio service: read side of the credit ledger.

Portfolios and platform statistics are materialized by the purchase workflow;
this module serves them and can rebuild a portfolio from the purchase ledger
when the materialized copy is suspected to have drifted.
"""

from __future__ import annotations

import logging
from typing import List

from domain.portfolio import PlatformStats, Portfolio
from domain.purchase import Purchase
from repositories.kv_store import KeyValueStore
from repositories.portfolio_repository import get_portfolio, get_stats, put_portfolio
from repositories.purchase_repository import list_purchases_by_user

logger = logging.getLogger(__name__)


def get_user_portfolio(store: KeyValueStore, user_id: str) -> Portfolio:
    """The user's portfolio; an all-zero portfolio if they never bought anything."""

    return get_portfolio(store, user_id)


def list_user_purchases(store: KeyValueStore, user_id: str) -> List[Purchase]:
    """The user's purchases, newest first."""

    return list_purchases_by_user(store, user_id)


def get_platform_stats(store: KeyValueStore) -> PlatformStats:
    return get_stats(store)


def rebuild_portfolio(store: KeyValueStore, user_id: str) -> Portfolio:
    """
    Recompute a portfolio by folding over the user's purchase records.

    The ledger is the source of truth; the stored portfolio is overwritten.
    """

    purchases = list_purchases_by_user(store, user_id)
    rebuilt = Portfolio.from_purchases(user_id, purchases)
    previous = get_portfolio(store, user_id)

    if previous != rebuilt:
        logger.warning(
            "Portfolio drift corrected",
            extra={
                "user_id": user_id,
                "stored_total_credits": previous.total_credits,
                "ledger_total_credits": rebuilt.total_credits,
            },
        )

    put_portfolio(store, rebuilt)
    return rebuilt


__all__ = [
    "get_user_portfolio",
    "list_user_purchases",
    "get_platform_stats",
    "rebuild_portfolio",
]
