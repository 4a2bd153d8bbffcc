"""
Tests for `services/purchase_service.py`.

Covers:
- Inventory conservation across purchases
- Portfolio totals matching the purchase ledger
- Failure without side effects (unknown project, insufficient credits, bad input)
- Price snapshot at purchase time
- Concurrent buyers racing for the same credits
- Rollback when a late step fails
"""

from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from conftest import make_project
from domain.errors import InsufficientInventory, InternalError, NotFound, ValidationError
from domain.project import Project
from domain.purchase import Purchase
from domain.time import epoch_millis
from repositories.kv_store import InMemoryKeyValueStore
from repositories.portfolio_repository import get_portfolio, get_stats
from repositories.project_repository import (
    get_project,
    get_project_versioned,
    insert_project,
    project_key,
    save_project_if_unchanged,
)
from repositories.purchase_repository import insert_purchase, list_purchases, list_purchases_by_user
from services.purchase_service import PurchaseRequest, execute_purchase


def test_purchase_moves_credits_from_project_to_portfolio(store, project: Project) -> None:
    purchase = execute_purchase(store, PurchaseRequest(project.project_id, 10, "user-a"))

    assert purchase.quantity == 10
    assert purchase.price_per_credit == Decimal("17")
    assert purchase.total_amount == Decimal("170")
    assert purchase.certificate_id.startswith("cert:")
    assert purchase.purchase_id.startswith("purchase:")
    assert purchase.purchase_id.endswith(":user-a")
    assert list_purchases_by_user(store, "user-a") == [purchase]

    assert get_project(store, project.project_id).credits_available == 90

    portfolio = get_portfolio(store, "user-a")
    assert portfolio.total_credits == 10
    assert portfolio.total_spent == Decimal("170")
    assert portfolio.total_co2_offset == 10
    assert portfolio.active_projects == 1
    assert portfolio.purchase_ids == (purchase.purchase_id,)

    stats = get_stats(store)
    assert stats.total_credits_sold == 10
    assert stats.total_co2_offset == 10
    assert stats.last_updated == purchase.purchased_at


def test_inventory_is_conserved_across_purchases(store, project: Project) -> None:
    for user_id, quantity in (("user-a", 10), ("user-b", 25), ("user-a", 5)):
        execute_purchase(store, PurchaseRequest(project.project_id, quantity, user_id))

    sold = sum(p.quantity for p in list_purchases(store) if p.project_id == project.project_id)
    assert sold == 40
    assert get_project(store, project.project_id).credits_available + sold == 100


def test_portfolio_totals_match_ledger(store, project: Project) -> None:
    second = make_project("p2", credits=50, price="12.50")
    insert_project(store, second)

    execute_purchase(store, PurchaseRequest(project.project_id, 3, "user-a"))
    execute_purchase(store, PurchaseRequest(second.project_id, 4, "user-a"))
    execute_purchase(store, PurchaseRequest(project.project_id, 2, "user-a"))

    purchases = list_purchases_by_user(store, "user-a")
    portfolio = get_portfolio(store, "user-a")

    assert portfolio.total_credits == sum(p.quantity for p in purchases) == 9
    assert portfolio.total_spent == sum((p.total_amount for p in purchases), Decimal("0"))
    assert portfolio.total_spent == Decimal("135")
    assert portfolio.active_projects == 2


def test_buying_exactly_all_credits_succeeds(store, project: Project) -> None:
    execute_purchase(store, PurchaseRequest(project.project_id, 100, "user-a"))

    assert get_project(store, project.project_id).credits_available == 0


def test_insufficient_credits_has_no_side_effects(store, project: Project) -> None:
    with pytest.raises(InsufficientInventory) as excinfo:
        execute_purchase(store, PurchaseRequest(project.project_id, 101, "user-a"))

    assert excinfo.value.available == 100
    assert get_project(store, project.project_id).credits_available == 100
    assert list_purchases(store) == []
    assert get_portfolio(store, "user-a").total_credits == 0
    assert get_stats(store).total_credits_sold == 0


def test_unknown_project_is_not_found(store) -> None:
    with pytest.raises(NotFound):
        execute_purchase(store, PurchaseRequest("missing", 1, "user-a"))

    assert list_purchases(store) == []


@pytest.mark.parametrize("quantity", [0, -5, True])
def test_non_positive_quantity_is_rejected(store, project: Project, quantity) -> None:
    with pytest.raises(ValidationError) as excinfo:
        execute_purchase(store, PurchaseRequest(project.project_id, quantity, "user-a"))

    assert excinfo.value.fields == ("quantity",)
    assert get_project(store, project.project_id).credits_available == 100


def test_missing_fields_are_named(store) -> None:
    with pytest.raises(ValidationError) as excinfo:
        execute_purchase(store, PurchaseRequest(None, None, "user-a"))

    assert excinfo.value.fields == ("projectId", "quantity")
    assert "projectId" in excinfo.value.message


def test_later_price_change_does_not_touch_past_purchases(store, project: Project) -> None:
    first = execute_purchase(store, PurchaseRequest(project.project_id, 2, "user-a"))

    current, version = get_project_versioned(store, project.project_id)
    assert save_project_if_unchanged(store, replace(current, price=Decimal("30")), version)

    second = execute_purchase(store, PurchaseRequest(project.project_id, 2, "user-a"))

    stored = {p.purchase_id: p for p in list_purchases_by_user(store, "user-a")}
    assert stored[first.purchase_id].price_per_credit == Decimal("17")
    assert stored[second.purchase_id].price_per_credit == Decimal("30")
    assert get_portfolio(store, "user-a").total_spent == Decimal("94")


def test_same_user_can_buy_twice_in_quick_succession(store, project: Project) -> None:
    first = execute_purchase(store, PurchaseRequest(project.project_id, 1, "user-a"))
    second = execute_purchase(store, PurchaseRequest(project.project_id, 1, "user-a"))

    assert first.purchase_id != second.purchase_id
    assert len(list_purchases_by_user(store, "user-a")) == 2


class _InterleavingStore(InMemoryKeyValueStore):
    """Holds the first two readers of one key until both have read it."""

    def __init__(self, key: str) -> None:
        super().__init__()
        self._key = key
        self._barrier = threading.Barrier(2, timeout=5)
        self._reads = 0
        self._reads_lock = threading.Lock()

    def get(self, key):
        stored = super().get(key)
        if key == self._key:
            with self._reads_lock:
                self._reads += 1
                hold = self._reads <= 2
            if hold:
                self._barrier.wait()
        return stored


def test_concurrent_buyers_cannot_oversell() -> None:
    """Two buyers of 60 each read N=100 at the same time; only one succeeds."""

    target = make_project("p1", credits=100)
    store = _InterleavingStore(project_key(target.project_id))
    insert_project(store, target)

    outcomes: dict = {}

    def buy(user_id: str) -> None:
        try:
            outcomes[user_id] = execute_purchase(store, PurchaseRequest(target.project_id, 60, user_id))
        except InsufficientInventory as e:
            outcomes[user_id] = e

    threads = [threading.Thread(target=buy, args=(uid,)) for uid in ("user-a", "user-b")]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    failures = [o for o in outcomes.values() if isinstance(o, InsufficientInventory)]
    successes = [o for o in outcomes.values() if not isinstance(o, InsufficientInventory)]
    assert len(successes) == 1
    assert len(failures) == 1
    assert failures[0].available == 40

    assert get_project(store, target.project_id).credits_available == 40
    assert sum(p.quantity for p in list_purchases(store)) == 60
    assert get_stats(store).total_credits_sold == 60


class _StatsWriteFails(InMemoryKeyValueStore):
    def compare_and_set(self, key, value, expected_version):
        if key == "platform:stats":
            raise InternalError("Failed to update platform:stats: backend unavailable")
        return super().compare_and_set(key, value, expected_version)


def test_late_failure_rolls_back_every_step() -> None:
    store = _StatsWriteFails()
    target = make_project("p1", credits=100)
    insert_project(store, target)

    with pytest.raises(InternalError):
        execute_purchase(store, PurchaseRequest(target.project_id, 10, "user-a"))

    assert get_project(store, target.project_id).credits_available == 100
    assert list_purchases(store) == []
    portfolio = get_portfolio(store, "user-a")
    assert portfolio.total_credits == 0
    assert portfolio.total_spent == Decimal("0")
    assert portfolio.active_projects == 0


def test_rollback_keeps_earlier_purchases_in_portfolio() -> None:
    store = InMemoryKeyValueStore()
    target = make_project("p1", credits=100)
    insert_project(store, target)
    execute_purchase(store, PurchaseRequest(target.project_id, 5, "user-a"))

    failing = _StatsWriteFails()
    for stored in store.get_by_prefix(""):
        failing.set(stored.key, stored.value)

    with pytest.raises(InternalError):
        execute_purchase(failing, PurchaseRequest(target.project_id, 10, "user-a"))

    portfolio = get_portfolio(failing, "user-a")
    assert portfolio.total_credits == 5
    assert portfolio.active_projects == 1
    assert get_project(failing, target.project_id).credits_available == 95


def test_history_orders_same_timestamp_purchases_newest_first(store, project: Project) -> None:
    at = datetime(2025, 6, 1, 9, 30, tzinfo=timezone.utc)
    millis = epoch_millis(at)
    first = Purchase.create(project, "user-a", 1, at, millis=millis)
    second = Purchase.create(project, "user-a", 2, at, millis=millis + 1)
    insert_purchase(store, second)
    insert_purchase(store, first)

    assert list_purchases_by_user(store, "user-a") == [second, first]
    assert list_purchases(store) == [first, second]
