"""Service for turning a free-text day ("tomorrow", "next friday") into a window."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import dateparser

DEFAULT_DAY = "tomorrow"


def _parse_date(raw: str, now: datetime) -> datetime | None:
    """Parse a raw day string using dateparser, returning a UTC datetime."""
    settings = {
        "PREFER_DATES_FROM": "future",
        "RELATIVE_BASE": now.astimezone(timezone.utc).replace(tzinfo=None),
        "RETURN_AS_TIMEZONE_AWARE": False,
    }
    result = dateparser.parse(raw, settings=settings)
    if result is None:
        return None
    return result.replace(tzinfo=timezone.utc)


def parse_day(raw: str | None, now: datetime) -> tuple[datetime, datetime]:
    """Return the ``[midnight, next midnight)`` UTC window for *raw*.

    Defaults to tomorrow when *raw* is empty. Raises ``ValueError`` if no
    date can be found in the text.
    """
    parsed = _parse_date(raw.strip() if raw and raw.strip() else DEFAULT_DAY, now)
    if parsed is None:
        raise ValueError("No date found in text")
    day_start = parsed.replace(hour=0, minute=0, second=0, microsecond=0)
    return day_start, day_start + timedelta(days=1)
