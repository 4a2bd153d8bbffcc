"""
Tests for the in-memory `KeyValueStore`.

The Supabase store follows the same contract; these tests pin that contract:
- versions start at 1 and bump on every write
- compare_and_set with None only creates
- compare_and_set with a stale version writes nothing
"""

from __future__ import annotations

from repositories.kv_store import InMemoryKeyValueStore


def test_set_and_get_bump_version() -> None:
    store = InMemoryKeyValueStore()

    store.set("a", {"n": 1})
    assert store.get("a").version == 1

    store.set("a", {"n": 2})
    stored = store.get("a")
    assert stored.value == {"n": 2}
    assert stored.version == 2


def test_missing_key_returns_none() -> None:
    assert InMemoryKeyValueStore().get("nope") is None


def test_create_only_when_absent() -> None:
    store = InMemoryKeyValueStore()

    assert store.compare_and_set("a", {"n": 1}, None) is True
    assert store.compare_and_set("a", {"n": 99}, None) is False
    assert store.get("a").value == {"n": 1}


def test_stale_version_is_refused() -> None:
    store = InMemoryKeyValueStore()
    store.set("a", {"n": 1})

    assert store.compare_and_set("a", {"n": 2}, 1) is True
    assert store.compare_and_set("a", {"n": 3}, 1) is False
    assert store.get("a").value == {"n": 2}


def test_update_of_deleted_key_is_refused() -> None:
    store = InMemoryKeyValueStore()
    store.set("a", {"n": 1})
    store.delete("a")

    assert store.compare_and_set("a", {"n": 2}, 1) is False
    assert store.get("a") is None


def test_prefix_scan_is_ordered_by_key() -> None:
    store = InMemoryKeyValueStore()
    for key in ("purchase:2:u", "project:1", "purchase:1:u"):
        store.set(key, {"key": key})

    assert [s.key for s in store.get_by_prefix("purchase:")] == ["purchase:1:u", "purchase:2:u"]


def test_values_are_copied() -> None:
    store = InMemoryKeyValueStore()
    value = {"items": [1]}
    store.set("a", value)

    value["items"].append(2)
    store.get("a").value["items"].append(3)

    assert store.get("a").value == {"items": [1]}
