# This project was developed with assistance from AI tools.
"""Activity log service.

Writes append-only activity entries linked by a SHA-256 hash chain for
tamper evidence. A PostgreSQL advisory lock serializes hash computation
across concurrent writers. Entries are written inside the caller's
transaction and never committed here.
"""

import hashlib
import json
import logging
from datetime import UTC, datetime

from db import ActivityLogEntry
from db.enums import ActivityAction
from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.auth import UserContext

logger = logging.getLogger(__name__)

# Fixed advisory lock key for activity log serialization.
ACTIVITY_LOCK_KEY = 900_001


def _compute_hash(entry_id: int, timestamp: str, action: str, event_data: dict | None) -> str:
    """Compute SHA-256 hash of an entry's key fields."""
    payload = f"{entry_id}|{timestamp}|{action}|{json.dumps(event_data, sort_keys=True, default=str)}"
    return hashlib.sha256(payload.encode()).hexdigest()


def _entry_hash(entry: ActivityLogEntry) -> str:
    action = getattr(entry.action, "value", entry.action)
    return _compute_hash(entry.id, str(entry.timestamp), action, entry.event_data)


async def write_activity_entry(
    session: AsyncSession,
    *,
    actor: UserContext | None,
    action: ActivityAction,
    application_id: int | None = None,
    description: str | None = None,
    entity_type: str | None = None,
    entity_id: int | None = None,
    event_data: dict | None = None,
) -> ActivityLogEntry:
    """Append a single activity entry with hash chain linkage.

    Args:
        session: Database session. The caller owns the transaction.
        actor: User who triggered the entry; None for system entries.
        action: What happened.
        application_id: Related application, if any.
        description: Human-readable summary shown in the activity feed.
        entity_type: Kind of record the entry is about (application, rfi, decision).
        entity_id: Primary key of that record.
        event_data: Arbitrary JSON-serializable payload.

    Returns:
        The created ActivityLogEntry (flushed, with prev_hash set).
    """
    # Released automatically when the transaction commits or rolls back.
    await session.execute(text(f"SELECT pg_advisory_xact_lock({ACTIVITY_LOCK_KEY})"))

    latest_stmt = select(ActivityLogEntry).order_by(ActivityLogEntry.id.desc()).limit(1)
    result = await session.execute(latest_stmt)
    prev_entry = result.scalar_one_or_none()

    prev_hash = _entry_hash(prev_entry) if prev_entry is not None else "genesis"

    # Timestamp set client-side so a later entry in the same transaction can
    # hash it without reloading the row.
    entry = ActivityLogEntry(
        timestamp=datetime.now(UTC),
        application_id=application_id,
        user_id=actor.user_id if actor else None,
        user_name=actor.name if actor else None,
        user_role=actor.role.value if actor else None,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        description=description,
        event_data=event_data,
        prev_hash=prev_hash,
    )
    session.add(entry)
    await session.flush()
    return entry


async def verify_activity_chain(session: AsyncSession) -> dict:
    """Verify the integrity of the activity log hash chain.

    Returns:
        {"status": "OK", "events_checked": N} on success, or
        {"status": "TAMPERED", "first_break_id": id, "events_checked": N}
        if a mismatch is found.
    """
    stmt = select(ActivityLogEntry).order_by(ActivityLogEntry.id.asc())
    result = await session.execute(stmt)
    entries = list(result.scalars().all())

    for i, entry in enumerate(entries):
        expected = "genesis" if i == 0 else _entry_hash(entries[i - 1])
        if entry.prev_hash != expected:
            logger.warning("Activity chain break at entry %s", entry.id)
            return {
                "status": "TAMPERED",
                "first_break_id": entry.id,
                "events_checked": i + 1,
            }

    return {"status": "OK", "events_checked": len(entries)}


async def get_application_activity(
    session: AsyncSession,
    application_id: int,
    *,
    limit: int = 200,
) -> list[ActivityLogEntry]:
    """Return the activity feed for one application, oldest first.

    Does NOT enforce data scope -- caller must check access to the application first.
    """
    stmt = (
        select(ActivityLogEntry)
        .where(ActivityLogEntry.application_id == application_id)
        .order_by(ActivityLogEntry.id.asc())
        .limit(limit)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())
