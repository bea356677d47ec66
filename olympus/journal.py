"""Journal entry CRUD."""

from __future__ import annotations

import logging

from olympus.clock import Clock
from olympus.errors import NotFoundError, ValidationError
from olympus.models import JournalEntry
from olympus.repository import Repository

logger = logging.getLogger(__name__)

ENTRIES = "journal_entries"


def validate_entry(title: str, content: str) -> list[str]:
    errors = []
    if not (title or "").strip():
        errors.append("Journal title is required")
    if not (content or "").strip():
        errors.append("Journal content is required")
    return errors


def list_entries(repo: Repository) -> list[JournalEntry]:
    rows = repo.query(ENTRIES, order_by=[("entry_date", True), ("created_at", True)])
    return [JournalEntry.from_dict(r) for r in rows]


def get_entry(repo: Repository, entry_id: str) -> JournalEntry:
    record = repo.get(ENTRIES, entry_id)
    if record is None:
        raise NotFoundError(f"Journal entry not found: {entry_id}")
    return JournalEntry.from_dict(record)


def create_entry(
    repo: Repository,
    title: str,
    content: str,
    clock: Clock,
    mood: str | None = None,
) -> JournalEntry:
    errors = validate_entry(title, content)
    if errors:
        raise ValidationError(errors)
    now = clock.iso_now()
    entry = JournalEntry(
        title=title.strip(),
        content=content,
        mood=mood or None,
        entry_date=clock.today_key(),
        created_at=now,
        updated_at=now,
    )
    record = entry.to_dict()
    record.pop("id")
    stored = repo.insert(ENTRIES, record)
    logger.info("Created journal entry %s for %s", stored["id"], entry.entry_date)
    return JournalEntry.from_dict(stored)


def update_entry(
    repo: Repository,
    entry_id: str,
    title: str,
    content: str,
    clock: Clock,
    mood: str | None = None,
) -> JournalEntry:
    """Edit an entry. updated_at moves; created_at and entry_date never do."""
    errors = validate_entry(title, content)
    if errors:
        raise ValidationError(errors)
    patch = {
        "title": title.strip(),
        "content": content,
        "mood": mood or None,
        "updated_at": clock.iso_now(),
    }
    repo.update(ENTRIES, entry_id, patch)
    logger.info("Updated journal entry %s", entry_id)
    return get_entry(repo, entry_id)


def delete_entry(repo: Repository, entry_id: str) -> None:
    repo.delete(ENTRIES, entry_id)
    logger.info("Deleted journal entry %s", entry_id)
