"""
Date/time parsing and conversion utilities, framework-agnostic.

All datetimes handled by the service are timezone-aware UTC. MongoDB is
opened with ``tz_aware=True``; ``ensure_utc`` covers documents written by
older clients that stored naive values.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from email.utils import format_datetime
from typing import Any, Optional

EXPIRY_DURATIONS: dict[str, timedelta] = {
    "1h": timedelta(hours=1),
    "1d": timedelta(days=1),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes, convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse a date/time value into a timezone-aware UTC datetime.

    Accepts:
    - ``None`` → ``None``
    - ``int`` / ``float`` → treated as Unix epoch seconds
    - ``str`` ending in ``"Z"`` → converted to ``+00:00`` before parsing
    - Any ISO 8601 string, including a bare date (``2024-05-01``)

    Naive datetimes (no ``tzinfo``) are assumed to be UTC.

    Returns:
        A timezone-aware ``datetime`` in UTC, or ``None`` if *value* is ``None``
        or cannot be parsed.
    """
    if value is None:
        return None
    try:
        if isinstance(value, (int, float)):
            return datetime.fromtimestamp(int(value), tz=timezone.utc)
        raw = str(value).strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        return ensure_utc(datetime.fromisoformat(raw))
    except (ValueError, OSError, OverflowError):
        return None


def expires_at_from_token(token: Optional[str], now: datetime) -> Optional[datetime]:
    """Map a relative expiry token (``1h``, ``1d``, ``7d``, ``30d``) to an
    absolute time. Unknown or empty tokens mean "never expires"."""
    if not token:
        return None
    duration = EXPIRY_DURATIONS.get(token)
    if duration is None:
        return None
    return now + duration


def expires_at_from_hours(value: Any, now: datetime) -> Optional[datetime]:
    """Parse an upload expiry: a positive hour count or a relative token."""
    if value is None or value == "":
        return None
    if isinstance(value, str) and value in EXPIRY_DURATIONS:
        return expires_at_from_token(value, now)
    try:
        hours = int(value)
    except (TypeError, ValueError):
        return None
    if hours <= 0:
        return None
    return now + timedelta(hours=hours)


def is_expired(expires_at: Optional[datetime], now: datetime) -> bool:
    return expires_at is not None and now > ensure_utc(expires_at)


def date_key(moment: datetime) -> str:
    """Daily bucket key, ``YYYY-MM-DD`` in UTC."""
    return ensure_utc(moment).date().isoformat()


def js_day_of_week(moment: datetime) -> int:
    """Weekday with Sunday = 0 through Saturday = 6."""
    return (moment.weekday() + 1) % 7


def http_date(moment: datetime) -> str:
    """RFC 7231 ``HTTP-date`` (``Wed, 21 Oct 2015 07:28:00 GMT``)."""
    return format_datetime(ensure_utc(moment), usegmt=True)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """ISO 8601 with millisecond precision and a ``Z`` suffix, or ``None``."""
    if value is None:
        return None
    return ensure_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def truncate_to_millis(moment: datetime) -> datetime:
    """Drop sub-millisecond precision, which BSON dates cannot store."""
    return moment.replace(microsecond=(moment.microsecond // 1000) * 1000)
