"""Date helpers shared across the application."""

from __future__ import annotations

from datetime import date, datetime

__all__ = [
    "parse_deadline",
    "serialize_date",
]


def parse_deadline(value: str | None) -> date | None:
    """Parse an ISO 8601 date or datetime string into a calendar date.

    Timezone-aware datetimes keep the calendar day they were written in.
    Raises ``ValueError`` when ``value`` is not ISO formatted.
    """
    if value is None:
        return None
    cleaned = value.strip()
    if not cleaned:
        return None
    if len(cleaned) == 10:
        return date.fromisoformat(cleaned)
    return datetime.fromisoformat(cleaned).date()


def serialize_date(value: date | None) -> str | None:
    """Serialise ``value`` to an ISO 8601 calendar date."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    return value.isoformat()
