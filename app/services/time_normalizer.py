"""Conversion of submitted time values into absolute timestamps.

Three input shapes are accepted:

* a full timestamp with an offset (``2024-03-10T15:30:00Z``), returned as is;
* a timestamp without offset and/or seconds (``2024-03-10T15:30``), read as
  local time in the default zone and converted to UTC;
* a bare clock time (``15:30``), read as a wall-clock time on the calendar
  date of a reference timestamp.

A reference stored in UTC is viewed in the default zone before its date is
taken; a reference carrying another offset keeps that offset.
"""

import re
from datetime import UTC, datetime, timedelta, tzinfo
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.config import settings
from app.core.exceptions import BaseDateUnavailableException, InvalidTimeFormatException

CLOCK_TIME_MAX_LENGTH = 5

_CLOCK_TIME = re.compile(r"^(\d{1,2}):(\d{2})$")
_MISSING_SECONDS = re.compile(r"^\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}$")


@lru_cache
def get_zone(name: str) -> tzinfo:
    """Resolve a zone name, falling back to UTC for unknown names."""
    if name.upper() == "UTC":
        return UTC
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return UTC


def default_zone() -> tzinfo:
    """Zone applied to timestamps submitted without an offset."""
    return get_zone(settings.default_timezone)


def is_clock_time(value: object) -> bool:
    """Check whether a value is a bare HH:MM clock time."""
    return (
        isinstance(value, str)
        and len(value.strip()) <= CLOCK_TIME_MAX_LENGTH
        and _CLOCK_TIME.match(value.strip()) is not None
    )


def _parse_clock_time(value: str, field: str) -> tuple[int, int]:
    match = _CLOCK_TIME.match(value)
    if match is None:
        raise InvalidTimeFormatException(field, value)

    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise InvalidTimeFormatException(field, value)
    return hour, minute


def _parse_timestamp(value: str, field: str, zone: tzinfo) -> datetime:
    if _MISSING_SECONDS.match(value):
        value = f"{value}:00"

    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as e:
        raise InvalidTimeFormatException(field, value) from e

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=zone).astimezone(UTC)
    return parsed


def _on_reference_date(reference: datetime, hour: int, minute: int, zone: tzinfo) -> datetime:
    offset = reference.utcoffset()
    if offset is not None and offset != timedelta(0):
        return reference.replace(hour=hour, minute=minute, second=0, microsecond=0)

    if offset is None:
        local = reference.replace(tzinfo=zone)
    else:
        local = reference.astimezone(zone)

    placed = local.replace(hour=hour, minute=minute, second=0, microsecond=0)
    return placed.astimezone(UTC)


def normalize_time(
    value: object,
    reference: datetime | None = None,
    *,
    field: str = "time",
    zone: tzinfo | None = None,
) -> datetime:
    """
    Convert a submitted time value into an absolute timestamp.

    Args:
        value: Timestamp string, clock time string or datetime
        reference: Timestamp whose calendar date a clock time is placed on
        field: Field name reported in errors
        zone: Zone for offset-less input, defaults to the configured zone

    Returns:
        Timezone-aware datetime

    Raises:
        InvalidTimeFormatException: If the value cannot be parsed
        BaseDateUnavailableException: If a clock time arrives without reference
    """
    zone = zone or default_zone()

    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=zone).astimezone(UTC)
        return value

    if not isinstance(value, str) or not value.strip():
        raise InvalidTimeFormatException(field, value)

    raw = value.strip()

    if len(raw) <= CLOCK_TIME_MAX_LENGTH:
        hour, minute = _parse_clock_time(raw, field)
        if reference is None:
            raise BaseDateUnavailableException(f"Cannot determine base date for {field}")
        return _on_reference_date(reference, hour, minute, zone)

    return _parse_timestamp(raw, field, zone)
