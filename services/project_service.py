"""
Project catalog service.

Browsing projects and accepting new project submissions from developers. New
projects enter as `pending_verification`.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, List, Mapping

from domain.errors import InternalError, NotFound, ValidationError
from domain.project import Project, ProjectStatus, dedupe_tags
from domain.time import epoch_millis, utc_now
from repositories.kv_store import KeyValueStore
from repositories.project_repository import get_project, insert_project, list_projects

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("name", "location", "type", "price", "certification")
_MAX_ID_ATTEMPTS: int = 10


def list_marketplace_projects(store: KeyValueStore) -> List[Project]:
    return list_projects(store)


def get_marketplace_project(store: KeyValueStore, project_id: str) -> Project:
    project = get_project(store, project_id)
    if project is None:
        raise NotFound("Project not found")
    return project


def _parse_price(value: Any) -> Decimal:
    try:
        price = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError("price must be a number", ["price"]) from None
    if not price.is_finite() or price <= 0:
        raise ValidationError("price must be greater than zero", ["price"])
    return price


def _parse_credits(value: Any) -> int:
    if value in (None, ""):
        return 0
    try:
        credits = int(value)
    except (TypeError, ValueError):
        raise ValidationError("credits_available must be an integer", ["credits_available"]) from None
    if credits < 0:
        raise ValidationError("credits_available must be >= 0", ["credits_available"])
    return credits


def create_project(store: KeyValueStore, fields: Mapping[str, Any]) -> Project:
    """
    Submit a new project for verification.

    Requires name, location, type, price and certification.
    """

    missing = [name for name in _REQUIRED_FIELDS if not fields.get(name)]
    if missing:
        raise ValidationError(f"Missing required project fields: {', '.join(missing)}", missing)

    price = _parse_price(fields["price"])
    credits = _parse_credits(fields.get("credits_available"))
    created_at = utc_now()
    millis = epoch_millis(created_at)

    for offset in range(_MAX_ID_ATTEMPTS):
        project = Project(
            project_id=str(millis + offset),
            name=str(fields["name"]).strip(),
            location=str(fields["location"]).strip(),
            project_type=str(fields["type"]).strip(),
            price=price,
            certification=str(fields["certification"]).strip(),
            credits_available=credits,
            description=str(fields.get("description") or ""),
            impact=str(fields.get("impact") or ""),
            co_benefits=dedupe_tags(fields.get("co_benefits")),
            status=ProjectStatus.PENDING_VERIFICATION,
            created_at=created_at,
        )
        if insert_project(store, project):
            logger.info(
                "Project submitted for verification",
                extra={"project_id": project.project_id, "project_name": project.name},
            )
            return project

    raise InternalError("Failed to create project: could not allocate an id")


__all__ = [
    "list_marketplace_projects",
    "get_marketplace_project",
    "create_project",
]
