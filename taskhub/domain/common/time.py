from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional, Union


def ensure_aware(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        raise ValueError("datetime must be timezone-aware")
    return dt


def to_iso(dt: datetime) -> str:
    ensure_aware(dt)
    # fixed width UTC so that stored strings sort in time order
    return dt.astimezone(timezone.utc).isoformat(timespec="microseconds")


def from_iso(s: str) -> datetime:
    return datetime.fromisoformat(s)


def parse_due_date(value: Union[str, date, datetime, None]) -> Optional[datetime]:
    """
    Coerce a due date into an aware UTC datetime.

    Accepts ISO 8601 strings ("2026-03-01", "2026-03-01T12:00:00Z", with or
    without offset), dates and datetimes. Naive values are taken as UTC.
    Raises ValueError for anything unparseable.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    else:
        raw = str(value).strip()
        if not raw:
            raise ValueError("empty date")
        if raw.endswith(("Z", "z")):
            raw = raw[:-1] + "+00:00"
        dt = datetime.fromisoformat(raw)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
