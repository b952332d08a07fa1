"""Loan, grace and fine periods expressed as a quantity of interval units"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, Optional

from dateutil.relativedelta import relativedelta

MINUTES_PER_HOUR = 60
MINUTES_PER_DAY = 24 * MINUTES_PER_HOUR
MINUTES_PER_WEEK = 7 * MINUTES_PER_DAY
# Months are billed as the longest calendar month
MINUTES_PER_MONTH = 31 * MINUTES_PER_DAY


class IntervalUnit(str, Enum):
    MINUTES = "Minutes"
    HOURS = "Hours"
    DAYS = "Days"
    WEEKS = "Weeks"
    MONTHS = "Months"

    @classmethod
    def parse(cls, interval_id: Optional[str]) -> Optional["IntervalUnit"]:
        """
        Accept both loan policy ("Weeks") and fine policy ("week") spellings.

        Returns None for anything unrecognised.
        """
        if not interval_id:
            return None

        normalized = interval_id.strip().lower()
        if not normalized.endswith("s"):
            normalized += "s"

        for unit in cls:
            if unit.value.lower() == normalized:
                return unit
        return None


_MINUTES_PER_UNIT = {
    IntervalUnit.MINUTES: 1,
    IntervalUnit.HOURS: MINUTES_PER_HOUR,
    IntervalUnit.DAYS: MINUTES_PER_DAY,
    IntervalUnit.WEEKS: MINUTES_PER_WEEK,
    IntervalUnit.MONTHS: MINUTES_PER_MONTH,
}


@dataclass(frozen=True)
class Period:
    """
    Non-negative duration such as "3 Weeks".

    A period whose unit could not be recognised has no effect: it converts
    to zero minutes and leaves timestamps unchanged. Older policy records
    carry free-form interval names, so these are tolerated rather than
    rejected.
    """

    quantity: int
    unit: Optional[IntervalUnit]

    def __post_init__(self) -> None:
        if self.quantity < 0:
            raise ValueError(f"Period quantity cannot be negative: {self.quantity}")

    @classmethod
    def from_values(cls, quantity: Optional[int], interval_id: Optional[str]) -> "Period":
        return cls(quantity=int(quantity or 0), unit=IntervalUnit.parse(interval_id))

    @classmethod
    def from_representation(cls, representation: Optional[Dict[str, Any]]) -> Optional["Period"]:
        """Build from {"duration": 3, "intervalId": "Weeks"}; None when absent"""
        if not representation:
            return None
        return cls.from_values(representation.get("duration"), representation.get("intervalId"))

    @classmethod
    def minutes(cls, quantity: int) -> "Period":
        return cls(quantity, IntervalUnit.MINUTES)

    @classmethod
    def hours(cls, quantity: int) -> "Period":
        return cls(quantity, IntervalUnit.HOURS)

    @classmethod
    def days(cls, quantity: int) -> "Period":
        return cls(quantity, IntervalUnit.DAYS)

    @classmethod
    def weeks(cls, quantity: int) -> "Period":
        return cls(quantity, IntervalUnit.WEEKS)

    @classmethod
    def months(cls, quantity: int) -> "Period":
        return cls(quantity, IntervalUnit.MONTHS)

    @property
    def is_recognised(self) -> bool:
        return self.unit is not None

    def to_minutes(self) -> int:
        if self.unit is None:
            return 0
        return self.quantity * _MINUTES_PER_UNIT[self.unit]

    def add_to(self, instant: datetime) -> datetime:
        """Apply the period to a timestamp (calendar months for MONTHS)"""
        if self.unit is None:
            return instant
        if self.unit is IntervalUnit.MONTHS:
            return instant + relativedelta(months=self.quantity)
        return instant + timedelta(minutes=self.to_minutes())

    def __str__(self) -> str:
        unit = self.unit.value if self.unit else "unknown interval"
        return f"{self.quantity} {unit}"
