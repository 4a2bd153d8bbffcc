"""Contact-form repository (persistence) over `contact:{millis}` keys."""

from __future__ import annotations

from typing import Any, Dict

from domain.contact import ContactSubmission
from domain.time import to_iso_utc
from repositories.kv_store import KeyValueStore


def contact_to_row(contact: ContactSubmission) -> Dict[str, Any]:
    return {
        "id": contact.contact_id,
        "name": contact.name,
        "email": contact.email,
        "company": contact.company,
        "subject": contact.subject,
        "message": contact.message,
        "inquiry_type": contact.inquiry_type,
        "submitted_at": to_iso_utc(contact.submitted_at, name="submitted_at"),
        "status": contact.status,
    }


def insert_contact(store: KeyValueStore, contact: ContactSubmission) -> bool:
    """Store a submission. Returns False if its key is already taken."""

    return store.compare_and_set(contact.contact_id, contact_to_row(contact), None)


__all__ = ["contact_to_row", "insert_contact"]
