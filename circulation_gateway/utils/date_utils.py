"""Date manipulation utilities"""

from datetime import datetime, time, timezone, tzinfo
from typing import Optional

from dateutil.parser import isoparse


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from start to end (negative when end is earlier)"""
    return int((end - start).total_seconds() // 60)


def parse_instant(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp (offsets with or without a colon); naive values are taken as UTC"""
    if not value:
        return None
    parsed = isoparse(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def with_zone_retain_fields(instant: datetime, zone: tzinfo) -> datetime:
    """Keep the wall-clock fields of an instant but move it into another zone"""
    return instant.replace(tzinfo=zone)


def parse_time_of_day(value: Optional[str]) -> Optional[time]:
    """Parse "HH:MM" (or "HH:MM:SS"); None when absent"""
    if not value:
        return None
    return time.fromisoformat(value)
