"""Fixed due date schedules: calendar bands that cap or fix loan due dates"""

from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Any, Callable, Dict, List, Optional

from circulation_gateway.domain.exceptions import ValidationError
from circulation_gateway.utils.date_utils import parse_instant, with_zone_retain_fields


@dataclass(frozen=True)
class ScheduleBand:
    """Loans made strictly between from_date and to_date are due no later than due"""

    from_date: datetime
    to_date: datetime
    due: datetime

    def contains(self, instant: datetime) -> bool:
        return self.from_date < instant < self.to_date


class FixedDueDateSchedule:
    """
    Ordered bands of a fixed due date schedule.

    Bands may overlap; the first band in table order containing an instant
    is the one that applies.
    """

    def __init__(self, bands: List[ScheduleBand], schedule_id: Optional[str] = None):
        self.bands = list(bands)
        self.schedule_id = schedule_id

    @classmethod
    def from_representation(
        cls,
        representation: Optional[Dict[str, Any]],
        zone: tzinfo = timezone.utc,
    ) -> "FixedDueDateSchedule":
        """
        Build from a schedule record's "schedules" array.

        Band boundaries keep their wall-clock fields but are interpreted in
        the configured zone. A missing record yields an empty schedule.
        """
        if representation is None:
            return cls([])

        def in_zone(value: str) -> datetime:
            return with_zone_retain_fields(parse_instant(value), zone)

        bands = [
            ScheduleBand(
                from_date=in_zone(band["from"]),
                to_date=in_zone(band["to"]),
                due=in_zone(band["due"]),
            )
            for band in representation.get("schedules", [])
        ]
        return cls(bands, schedule_id=representation.get("id"))

    def is_empty(self) -> bool:
        return not self.bands

    def find_band_for(self, instant: datetime) -> Optional[ScheduleBand]:
        return next((band for band in self.bands if band.contains(instant)), None)

    def due_date_for(self, instant: datetime) -> Optional[datetime]:
        band = self.find_band_for(instant)
        return band.due if band else None

    def truncate(
        self,
        rolling_due_date: datetime,
        loan_date: datetime,
        no_applicable_band: Callable[[], ValidationError],
    ) -> datetime:
        """
        Cap a rolling due date at the due value of the band containing the loan date.

        A schedule can only shorten a due date, never extend it. An empty
        schedule leaves the due date untouched.

        Raises:
            ValidationError: the error supplied by the caller when no band
                contains the loan date
        """
        if self.is_empty():
            return rolling_due_date

        limit = self.due_date_for(loan_date)
        if limit is None:
            raise no_applicable_band()
        return min(rolling_due_date, limit)

