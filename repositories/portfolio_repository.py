"""
Portfolio and platform-statistics repository (persistence).

Keys:
- `portfolio:{user_id}` one materialized portfolio per buyer
- `platform:stats` singleton platform counters

Writers use the versioned helpers so concurrent purchases never overwrite each
other's increments.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Mapping, Optional, Tuple

from domain.portfolio import PlatformStats, Portfolio
from domain.time import parse_utc_datetime, to_iso_utc
from repositories.kv_store import KeyValueStore

_STATS_KEY: str = "platform:stats"


def portfolio_key(user_id: str) -> str:
    return f"portfolio:{user_id}"


def _row_to_portfolio(row: Mapping[str, Any]) -> Portfolio:
    return Portfolio(
        user_id=str(row["user_id"]),
        total_credits=int(row.get("total_credits") or 0),
        total_spent=Decimal(str(row.get("total_spent") or "0")),
        total_co2_offset=int(row.get("total_co2_offset") or 0),
        purchase_ids=tuple(row.get("purchases") or ()),
        project_ids=tuple(row.get("project_ids") or ()),
    )


def portfolio_to_row(portfolio: Portfolio) -> Dict[str, Any]:
    return {
        "user_id": portfolio.user_id,
        "total_credits": portfolio.total_credits,
        "total_spent": str(portfolio.total_spent),
        "total_co2_offset": portfolio.total_co2_offset,
        "active_projects": portfolio.active_projects,
        "purchases": list(portfolio.purchase_ids),
        "project_ids": list(portfolio.project_ids),
    }


def get_portfolio_versioned(store: KeyValueStore, user_id: str) -> Tuple[Portfolio, Optional[int]]:
    """
    Fetch a portfolio and its version.

    A user without purchases gets an empty portfolio and version None, which
    `save_portfolio_if_unchanged` treats as "create".
    """

    stored = store.get(portfolio_key(user_id))
    if stored is None:
        return Portfolio.empty(user_id), None
    return _row_to_portfolio(stored.value), stored.version


def get_portfolio(store: KeyValueStore, user_id: str) -> Portfolio:
    return get_portfolio_versioned(store, user_id)[0]


def save_portfolio_if_unchanged(
    store: KeyValueStore, portfolio: Portfolio, expected_version: Optional[int]
) -> bool:
    return store.compare_and_set(portfolio_key(portfolio.user_id), portfolio_to_row(portfolio), expected_version)


def put_portfolio(store: KeyValueStore, portfolio: Portfolio) -> None:
    store.set(portfolio_key(portfolio.user_id), portfolio_to_row(portfolio))


def _row_to_stats(row: Mapping[str, Any]) -> PlatformStats:
    last_updated = row.get("last_updated")
    return PlatformStats(
        total_credits_sold=int(row.get("total_credits_sold") or 0),
        total_co2_offset=int(row.get("total_co2_offset") or 0),
        active_projects=int(row.get("active_projects") or 0),
        countries_covered=int(row.get("countries_covered") or 0),
        communities_supported=int(row.get("communities_supported") or 0),
        ecosystems_protected=int(row.get("ecosystems_protected") or 0),
        last_updated=parse_utc_datetime(last_updated) if last_updated else None,
    )


def stats_to_row(stats: PlatformStats) -> Dict[str, Any]:
    return {
        "total_credits_sold": stats.total_credits_sold,
        "total_co2_offset": stats.total_co2_offset,
        "active_projects": stats.active_projects,
        "countries_covered": stats.countries_covered,
        "communities_supported": stats.communities_supported,
        "ecosystems_protected": stats.ecosystems_protected,
        "last_updated": to_iso_utc(stats.last_updated, name="last_updated") if stats.last_updated else None,
    }


def get_stats_versioned(store: KeyValueStore) -> Tuple[PlatformStats, Optional[int]]:
    """Fetch platform stats; zeroed stats and version None when not yet created."""

    stored = store.get(_STATS_KEY)
    if stored is None:
        return PlatformStats(), None
    return _row_to_stats(stored.value), stored.version


def get_stats(store: KeyValueStore) -> PlatformStats:
    return get_stats_versioned(store)[0]


def save_stats_if_unchanged(
    store: KeyValueStore, stats: PlatformStats, expected_version: Optional[int]
) -> bool:
    return store.compare_and_set(_STATS_KEY, stats_to_row(stats), expected_version)


__all__ = [
    "portfolio_key",
    "portfolio_to_row",
    "get_portfolio",
    "get_portfolio_versioned",
    "save_portfolio_if_unchanged",
    "put_portfolio",
    "stats_to_row",
    "get_stats",
    "get_stats_versioned",
    "save_stats_if_unchanged",
]
