"""Domain: contact-form submissions."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .time import require_utc_timestamp

CONTACT_REQUIRED_FIELDS = ("name", "email", "subject", "message")


@dataclass(frozen=True, slots=True)
class ContactSubmission:
    contact_id: str
    name: str
    email: str
    subject: str
    message: str
    submitted_at: datetime
    company: Optional[str] = None
    inquiry_type: Optional[str] = None
    status: str = "new"

    def __post_init__(self) -> None:
        require_utc_timestamp("submitted_at", self.submitted_at)
