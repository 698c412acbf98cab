"""UTC -> America/New_York conversion for Canvas timestamps.

Canvas returns instants like ``2025-11-07T06:59:00Z``. Calendar events are
created with a local wall-clock time plus an explicit zone name, so the
calendar service resolves DST itself; we only need the wall-clock string and
a readable form of it.
"""

from datetime import datetime, timezone

from dateutil import parser as date_parser
from dateutil import tz

from .models import ConvertedTime

TARGET_ZONE_NAME = "America/New_York"
TARGET_ZONE = tz.gettz(TARGET_ZONE_NAME)


def parse_instant(value: str | datetime | None) -> datetime | None:
    """Parse ``value`` into an aware UTC datetime, or None if it isn't one."""
    if value is None or value == "":
        return None
    try:
        dt = value if isinstance(value, datetime) else date_parser.isoparse(str(value))
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)
    except (ValueError, OverflowError):
        # not ISO-8601, or shifting to UTC leaves the datetime range
        return None


def format_display(local: datetime) -> str:
    hour = local.hour % 12 or 12
    meridiem = "AM" if local.hour < 12 else "PM"
    return f"{local:%B} {local.day}, {local.year} at {hour}:{local:%M} {meridiem}"


def to_target_zone(value: str | datetime | None) -> ConvertedTime | None:
    instant = parse_instant(value)
    if instant is None:
        return None
    try:
        local = instant.astimezone(TARGET_ZONE)
    except (ValueError, OverflowError):
        return None
    return ConvertedTime(
        local_datetime=local.strftime("%Y-%m-%dT%H:%M:%S"),
        display=format_display(local),
    )
