from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_optional_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    return parse_iso_date(value)


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 timestamp as stored in the documents.

    Accepts a trailing ``Z`` (as written by browsers) as UTC.
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def format_iso_datetime(value: datetime) -> str:
    return value.isoformat()


def utc_calendar_date(value: datetime) -> date:
    """Calendar date of a timestamp; aware values are converted to UTC first."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.date()


def to_local_naive(value: datetime) -> datetime:
    """Drop tzinfo after converting to local time, so it compares with now_local()."""
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()
