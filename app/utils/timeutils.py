"""UTC 시각 헬퍼.

Some drivers (SQLite in tests) hand back naive datetimes for
``DateTime(timezone=True)`` columns; everything stored here is UTC, so a
naive value is read as UTC.
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
