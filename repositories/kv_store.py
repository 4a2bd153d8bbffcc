"""
Key-value store (persistence).

Projects, purchases, portfolios, platform statistics, registrations and
document ownership records all live in a single versioned key-value table:

    kv_store(key text primary key, value jsonb not null, version integer not null)

Every write bumps `version`. `compare_and_set` only writes when the stored
version still matches what the caller read, which is how the purchase workflow
avoids lost updates between concurrent buyers.

This module contains no business rules; values are plain JSON dicts.
"""

from __future__ import annotations

import copy
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol

import httpx
from postgrest.exceptions import APIError

from domain.errors import InternalError
from repositories.client import get_supabase

# Supabase table name for the key-value store.
# Keep this aligned with sql/schema.sql.
_KV_TABLE: str = "kv_store"

# PostgreSQL unique_violation
_UNIQUE_VIOLATION: str = "23505"


@dataclass(frozen=True, slots=True)
class StoredValue:
    key: str
    value: Dict[str, Any]
    version: int


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[StoredValue]: ...

    def get_by_prefix(self, prefix: str) -> List[StoredValue]: ...

    def set(self, key: str, value: Dict[str, Any]) -> None: ...

    def compare_and_set(
        self, key: str, value: Dict[str, Any], expected_version: Optional[int]
    ) -> bool: ...

    def delete(self, key: str) -> None: ...


def _check(response: Any, operation: str) -> List[Dict[str, Any]]:
    error = getattr(response, "error", None)
    if error:
        raise InternalError(f"Failed to {operation}: {error}")
    return getattr(response, "data", None) or []


def _reason(e: Exception) -> str:
    # APIError carries a message; transport errors only have str().
    return getattr(e, "message", None) or str(e)


def _row_to_stored(row: Dict[str, Any]) -> StoredValue:
    return StoredValue(key=str(row["key"]), value=dict(row["value"] or {}), version=int(row["version"]))


class SupabaseKeyValueStore:
    """KeyValueStore backed by the `kv_store` table."""

    def __init__(self, client: Any = None, table: str = _KV_TABLE) -> None:
        self._client = client
        self._table_name = table

    def _table(self):
        client = self._client if self._client is not None else get_supabase()
        return client.table(self._table_name)

    def get(self, key: str) -> Optional[StoredValue]:
        try:
            response = self._table().select("key,value,version").eq("key", key).limit(1).execute()
        except (APIError, httpx.HTTPError) as e:
            raise InternalError(f"Failed to read {key}: {_reason(e)}") from e
        rows = _check(response, f"read {key}")
        return _row_to_stored(rows[0]) if rows else None

    def get_by_prefix(self, prefix: str) -> List[StoredValue]:
        # '%' and '_' are LIKE wildcards; our key prefixes never contain them.
        try:
            response = (
                self._table()
                .select("key,value,version")
                .like("key", f"{prefix}%")
                .order("key")
                .execute()
            )
        except (APIError, httpx.HTTPError) as e:
            raise InternalError(f"Failed to scan {prefix}*: {_reason(e)}") from e
        return [_row_to_stored(row) for row in _check(response, f"scan {prefix}*")]

    def set(self, key: str, value: Dict[str, Any]) -> None:
        current = self.get(key)
        version = current.version + 1 if current else 1
        try:
            response = (
                self._table()
                .upsert({"key": key, "value": value, "version": version}, on_conflict="key")
                .execute()
            )
        except (APIError, httpx.HTTPError) as e:
            raise InternalError(f"Failed to write {key}: {_reason(e)}") from e
        _check(response, f"write {key}")

    def compare_and_set(
        self, key: str, value: Dict[str, Any], expected_version: Optional[int]
    ) -> bool:
        if expected_version is None:
            try:
                response = (
                    self._table().insert({"key": key, "value": value, "version": 1}).execute()
                )
            except (APIError, httpx.HTTPError) as e:
                if str(getattr(e, "code", "")) == _UNIQUE_VIOLATION:
                    return False
                raise InternalError(f"Failed to create {key}: {_reason(e)}") from e
            _check(response, f"create {key}")
            return True

        try:
            response = (
                self._table()
                .update({"value": value, "version": expected_version + 1})
                .eq("key", key)
                .eq("version", expected_version)
                .execute()
            )
        except (APIError, httpx.HTTPError) as e:
            raise InternalError(f"Failed to update {key}: {_reason(e)}") from e

        # No updated rows: the key is gone or another writer got there first.
        return bool(_check(response, f"update {key}"))

    def delete(self, key: str) -> None:
        try:
            response = self._table().delete().eq("key", key).execute()
        except (APIError, httpx.HTTPError) as e:
            raise InternalError(f"Failed to delete {key}: {_reason(e)}") from e
        _check(response, f"delete {key}")


class InMemoryKeyValueStore:
    """
    Process-local KeyValueStore with the same versioning semantics.

    Used by the `memory` store backend (local demos) and the test-suite.
    Values are deep-copied in and out so callers can never mutate stored state.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._data: Dict[str, StoredValue] = {}

    def get(self, key: str) -> Optional[StoredValue]:
        with self._lock:
            stored = self._data.get(key)
            return copy.deepcopy(stored) if stored else None

    def get_by_prefix(self, prefix: str) -> List[StoredValue]:
        with self._lock:
            return [
                copy.deepcopy(self._data[key])
                for key in sorted(self._data)
                if key.startswith(prefix)
            ]

    def set(self, key: str, value: Dict[str, Any]) -> None:
        with self._lock:
            current = self._data.get(key)
            version = current.version + 1 if current else 1
            self._data[key] = StoredValue(key, copy.deepcopy(value), version)

    def compare_and_set(
        self, key: str, value: Dict[str, Any], expected_version: Optional[int]
    ) -> bool:
        with self._lock:
            current = self._data.get(key)
            if expected_version is None:
                if current is not None:
                    return False
                self._data[key] = StoredValue(key, copy.deepcopy(value), 1)
                return True
            if current is None or current.version != expected_version:
                return False
            self._data[key] = StoredValue(key, copy.deepcopy(value), expected_version + 1)
            return True

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


__all__ = [
    "StoredValue",
    "KeyValueStore",
    "SupabaseKeyValueStore",
    "InMemoryKeyValueStore",
]
