"""
Domain: blue carbon projects.

A Project is a verified ecosystem-restoration initiative that generates credits.
One credit is one metric tonne of CO2-equivalent.

Invariants:
- credits_available >= 0 at all times.
- credits_available only changes through `reserve` / `release`, which the
  purchase workflow is the sole caller of.

Pure domain entity: no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple

from .errors import InsufficientInventory
from .time import require_utc_timestamp


class ProjectStatus(str, Enum):
    ACTIVE = "active"
    PENDING_VERIFICATION = "pending_verification"


@dataclass(frozen=True, slots=True)
class Project:
    """
    Immutable snapshot of a project listing.

    price is the per-credit price in the platform's base currency unit.
    """

    project_id: str
    name: str
    location: str
    project_type: str
    price: Decimal
    certification: str
    credits_available: int = 0
    description: str = ""
    impact: str = ""
    co_benefits: Tuple[str, ...] = field(default_factory=tuple)
    status: ProjectStatus = ProjectStatus.ACTIVE
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.credits_available < 0:
            raise ValueError("credits_available must be >= 0")
        if self.price < 0:
            raise ValueError("price must be >= 0")
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)

    def reserve(self, quantity: int) -> "Project":
        """
        Return a new Project with `quantity` credits removed from inventory.

        Raises InsufficientInventory when quantity exceeds what is available.
        """

        if quantity <= 0:
            raise ValueError("quantity must be > 0")
        if quantity > self.credits_available:
            raise InsufficientInventory(self.project_id, quantity, self.credits_available)
        return replace(self, credits_available=self.credits_available - quantity)

    def release(self, quantity: int) -> "Project":
        """Return a new Project with `quantity` credits put back (undo of `reserve`)."""

        if quantity <= 0:
            raise ValueError("quantity must be > 0")
        return replace(self, credits_available=self.credits_available + quantity)


def dedupe_tags(tags) -> Tuple[str, ...]:
    """Normalize co-benefit tags to an ordered tuple without blanks or repeats."""

    if isinstance(tags, str):
        tags = [tags]
    seen: list[str] = []
    for tag in tags or ():
        text = str(tag).strip()
        if text and text not in seen:
            seen.append(text)
    return tuple(seen)
