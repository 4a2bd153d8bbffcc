"""
Seed service: one-off marketplace initialization.

Run explicitly at deploy time (scripts/seed_marketplace.py), never on process
start. Every step is idempotent: existing projects and statistics are left
untouched, so concurrent or repeated runs are harmless.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

from domain.portfolio import PlatformStats
from domain.project import Project, ProjectStatus
from domain.time import utc_now
from repositories.kv_store import KeyValueStore
from repositories.portfolio_repository import save_stats_if_unchanged
from repositories.project_repository import insert_project
from repositories.storage_repository import SupabaseDocumentStorage

logger = logging.getLogger(__name__)


def sample_projects() -> List[Project]:
    created_at = utc_now()
    return [
        Project(
            project_id="1",
            name="Mangrove Restoration - Andhra Pradesh, India",
            location="Andhra Pradesh, India",
            project_type="Restoration & Protection",
            price=Decimal("17"),
            certification="Verified Carbon Standard (VCS)",
            description="Large-scale mangrove restoration project protecting 5,000 hectares of coastal forest.",
            impact="1 credit = 1 metric tonne CO₂ removed",
            credits_available=50000,
            co_benefits=("Biodiversity Protection", "Local Fisheries Support", "Coastal Defense"),
            status=ProjectStatus.ACTIVE,
            created_at=created_at,
        ),
        Project(
            project_id="2",
            name="Seagrass Conservation - Great Barrier Reef",
            location="Queensland, Australia",
            project_type="Conservation",
            price=Decimal("22"),
            certification="Gold Standard",
            description="Protecting and restoring critical seagrass meadows in the Great Barrier Reef Marine Park.",
            impact="1 credit = 1 metric tonne CO₂ sequestered",
            credits_available=25000,
            co_benefits=("Marine Biodiversity", "Tourism Support", "Water Quality Improvement"),
            status=ProjectStatus.ACTIVE,
            created_at=created_at,
        ),
        Project(
            project_id="3",
            name="Salt Marsh Restoration - Norfolk, UK",
            location="Norfolk, United Kingdom",
            project_type="Restoration",
            price=Decimal("19"),
            certification="Plan Vivo",
            description="Restoring degraded salt marshes along the Norfolk coast to enhance carbon storage.",
            impact="1 credit = 1 metric tonne CO₂ stored",
            credits_available=15000,
            co_benefits=("Flood Protection", "Bird Habitat", "Research Opportunities"),
            status=ProjectStatus.ACTIVE,
            created_at=created_at,
        ),
        Project(
            project_id="4",
            name="Blue Carbon Initiative - Philippines",
            location="Palawan, Philippines",
            project_type="Community-Based",
            price=Decimal("15"),
            certification="Climate Action Reserve",
            description="Community-led mangrove restoration supporting local livelihoods and coastal protection.",
            impact="1 credit = 1 metric tonne CO₂ avoided",
            credits_available=30000,
            co_benefits=("Community Employment", "Sustainable Fishing", "Education Programs"),
            status=ProjectStatus.ACTIVE,
            created_at=created_at,
        ),
    ]


def initial_platform_stats() -> PlatformStats:
    return PlatformStats(
        total_credits_sold=125000,
        total_co2_offset=125000,
        active_projects=150,
        countries_covered=25,
        communities_supported=45000,
        ecosystems_protected=15000,
        last_updated=utc_now(),
    )


@dataclass(frozen=True, slots=True)
class SeedReport:
    bucket_created: bool = False
    projects_created: List[str] = field(default_factory=list)
    stats_created: bool = False


def seed_marketplace(
    store: KeyValueStore,
    storage: Optional[SupabaseDocumentStorage] = None,
) -> SeedReport:
    """Create the documents bucket, sample projects and initial statistics if absent."""

    bucket_created = storage.ensure_bucket() if storage is not None else False
    if bucket_created:
        logger.info("Company documents storage bucket created", extra={"bucket": storage.bucket})

    created: List[str] = []
    for project in sample_projects():
        if insert_project(store, project):
            created.append(project.project_id)
    if created:
        logger.info("Sample projects initialized", extra={"project_ids": created})

    stats_created = save_stats_if_unchanged(store, initial_platform_stats(), None)
    if stats_created:
        logger.info("Platform statistics initialized")

    return SeedReport(bucket_created=bucket_created, projects_created=created, stats_created=stats_created)


__all__ = ["SeedReport", "sample_projects", "initial_platform_stats", "seed_marketplace"]
