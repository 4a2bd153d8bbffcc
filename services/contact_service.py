"""Contact-form service."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from domain.contact import CONTACT_REQUIRED_FIELDS, ContactSubmission
from domain.errors import InternalError, ValidationError
from domain.time import epoch_millis, utc_now
from repositories.contact_repository import insert_contact
from repositories.kv_store import KeyValueStore

logger = logging.getLogger(__name__)


def submit_contact(store: KeyValueStore, fields: Mapping[str, Any]) -> ContactSubmission:
    missing = [name for name in CONTACT_REQUIRED_FIELDS if not fields.get(name)]
    if missing:
        raise ValidationError.missing(missing)

    submitted_at = utc_now()
    millis = epoch_millis(submitted_at)

    for offset in range(10):
        contact = ContactSubmission(
            contact_id=f"contact:{millis + offset}",
            name=str(fields["name"]),
            email=str(fields["email"]),
            subject=str(fields["subject"]),
            message=str(fields["message"]),
            company=fields.get("company") or None,
            inquiry_type=fields.get("inquiryType") or None,
            submitted_at=submitted_at,
        )
        if insert_contact(store, contact):
            logger.info("New contact submission", extra={"contact_id": contact.contact_id})
            return contact

    raise InternalError("Failed to store contact submission: key collision")


__all__ = ["submit_contact"]
