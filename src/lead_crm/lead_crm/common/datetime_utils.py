from __future__ import annotations

from datetime import date, datetime, time, timedelta, tzinfo
from decimal import ROUND_HALF_UP, Decimal

import pytz

from ..core.constants import TOTAL_HOURS_SCALE
from ..core.exceptions import ValidationError


def get_timezone(name: str) -> tzinfo:
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError as e:
        raise ValidationError(f"Unknown timezone: {name}") from e


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date.

    Full ISO timestamps are accepted too (the client sometimes sends them);
    only the date part is kept.
    """
    value = (value or "").strip()
    try:
        return datetime.strptime(value[:10], "%Y-%m-%d").date()
    except ValueError as e:
        raise ValidationError(f"Invalid date: {value!r} (expected YYYY-MM-DD)") from e


def now_local(tz: tzinfo) -> datetime:
    """Current time in the given timezone.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(tz)


def localize(value: datetime, tz: tzinfo) -> datetime:
    """Return an aware datetime expressed in ``tz``.

    Naive values are taken to already be wall-clock time in ``tz``.
    """
    if value.tzinfo is None:
        if hasattr(tz, "localize"):
            return tz.localize(value)
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)


def _start_of(day: date, tz: tzinfo) -> datetime:
    return localize(datetime.combine(day, time.min), tz)


def day_window(reference: datetime | date, tz: tzinfo) -> tuple[datetime, datetime]:
    """Bounds of the calendar day containing ``reference`` in ``tz``.

    Returns ``(start, end)`` where start is 00:00 and end is the last
    microsecond of that day, both aware. DST days are 23 or 25 hours long.
    """
    if isinstance(reference, datetime):
        day = localize(reference, tz).date()
    else:
        day = reference

    start = _start_of(day, tz)
    end = _start_of(day + timedelta(days=1), tz) - timedelta(microseconds=1)
    if hasattr(tz, "normalize"):
        end = tz.normalize(end)
    return start, end


def iter_days(start: date, end: date):
    """Yield each date from start to end, inclusive."""
    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)


def hours_between(start: datetime, end: datetime) -> Decimal:
    """Elapsed hours as a Decimal at the persisted scale, not below zero."""
    seconds = Decimal(str((end - start).total_seconds()))
    hours = (seconds / Decimal(3600)).quantize(Decimal(TOTAL_HOURS_SCALE), rounding=ROUND_HALF_UP)
    return max(hours, Decimal("0.00"))
