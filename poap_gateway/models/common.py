"""
Shared column helpers for ORM models.
"""

import uuid
from datetime import datetime, timezone


def new_id() -> str:
    """Primary key generator (UUID4 as string, portable across SQLite and PostgreSQL)."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Naive UTC timestamp; all stored datetimes are UTC without tzinfo."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def iso(value) -> str:
    return value.isoformat() if value else None
