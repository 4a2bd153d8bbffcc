"""
Project repository (persistence).

Persistence operations for the Project domain entity over the key-value store
(`project:{id}`). No business rules live here; inventory checks belong to the
purchase workflow.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Tuple

from domain.project import Project, ProjectStatus, dedupe_tags
from domain.time import parse_utc_datetime, to_iso_utc
from repositories.kv_store import KeyValueStore

_PROJECT_PREFIX: str = "project:"


def project_key(project_id: str) -> str:
    return f"{_PROJECT_PREFIX}{project_id}"


def _row_to_project(row: Mapping[str, Any]) -> Project:
    """Convert a stored JSON value into a Project."""

    created_at = row.get("created_at")
    return Project(
        project_id=str(row["id"]),
        name=str(row["name"]),
        location=str(row["location"]),
        project_type=str(row["type"]),
        price=Decimal(str(row["price"])),
        certification=str(row["certification"]),
        credits_available=int(row.get("credits_available") or 0),
        description=row.get("description") or "",
        impact=row.get("impact") or "",
        co_benefits=dedupe_tags(row.get("co_benefits")),
        status=ProjectStatus(row.get("status") or ProjectStatus.ACTIVE.value),
        created_at=parse_utc_datetime(created_at) if created_at else None,
    )


def project_to_row(project: Project) -> Dict[str, Any]:
    return {
        "id": project.project_id,
        "name": project.name,
        "location": project.location,
        "type": project.project_type,
        "price": str(project.price),
        "certification": project.certification,
        "credits_available": project.credits_available,
        "description": project.description,
        "impact": project.impact,
        "co_benefits": list(project.co_benefits),
        "status": project.status.value,
        "created_at": to_iso_utc(project.created_at, name="created_at") if project.created_at else None,
    }


def list_projects(store: KeyValueStore) -> List[Project]:
    """All projects, in key order."""

    return [_row_to_project(stored.value) for stored in store.get_by_prefix(_PROJECT_PREFIX)]


def get_project_versioned(store: KeyValueStore, project_id: str) -> Optional[Tuple[Project, int]]:
    """Fetch a project together with the store version it was read at."""

    stored = store.get(project_key(project_id))
    if stored is None:
        return None
    return _row_to_project(stored.value), stored.version


def get_project(store: KeyValueStore, project_id: str) -> Optional[Project]:
    found = get_project_versioned(store, project_id)
    return found[0] if found else None


def insert_project(store: KeyValueStore, project: Project) -> bool:
    """Create a project. Returns False if the id is already taken."""

    return store.compare_and_set(project_key(project.project_id), project_to_row(project), None)


def save_project_if_unchanged(store: KeyValueStore, project: Project, expected_version: int) -> bool:
    """Conditional write; False means another writer changed the project first."""

    return store.compare_and_set(project_key(project.project_id), project_to_row(project), expected_version)


__all__ = [
    "project_key",
    "project_to_row",
    "list_projects",
    "get_project",
    "get_project_versioned",
    "insert_project",
    "save_project_if_unchanged",
]
