"""Domain models - immutable dataclasses representing circulation records"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime, time
from typing import List, Optional

from circulation_gateway.domain.period import MINUTES_PER_DAY, MINUTES_PER_HOUR
from circulation_gateway.domain.policies import LoanPolicy, OverdueFinePolicy


@dataclass(frozen=True)
class Location:
    """Shelving location with its place in the institution hierarchy"""

    id: str
    name: Optional[str] = None
    campus_id: Optional[str] = None
    library_id: Optional[str] = None
    institution_id: Optional[str] = None
    primary_service_point_id: Optional[str] = None


@dataclass(frozen=True)
class Item:
    """Inventory item with the attributes circulation rules look at"""

    id: str
    material_type_id: Optional[str]
    permanent_loan_type_id: Optional[str]
    temporary_loan_type_id: Optional[str] = None
    holdings_record_id: Optional[str] = None
    location: Optional[Location] = None
    found: bool = True

    @classmethod
    def not_found(cls, item_id: str) -> "Item":
        return cls(id=item_id, material_type_id=None, permanent_loan_type_id=None, found=False)

    @property
    def loan_type_id(self) -> Optional[str]:
        """Temporary loan type overrides the permanent one"""
        return self.temporary_loan_type_id or self.permanent_loan_type_id

    @property
    def location_id(self) -> Optional[str]:
        return self.location.id if self.location else None

    def does_not_have_holding(self) -> bool:
        return not self.holdings_record_id


@dataclass(frozen=True)
class Patron:
    """Borrower or requester"""

    id: str
    patron_group_id: Optional[str]


@dataclass(frozen=True)
class Loan:
    """
    Loan as seen by the policy engine.

    Never mutated here: derived values are returned for the caller to apply,
    and policies are attached with the with_* copies.
    """

    id: str
    item_id: str
    user_id: str
    loan_date: datetime
    due_date: Optional[datetime] = None
    due_date_changed_by_recall: bool = False
    checkout_service_point_id: Optional[str] = None
    loan_policy: Optional[LoanPolicy] = None
    overdue_fine_policy: Optional[OverdueFinePolicy] = None

    def with_loan_policy(self, loan_policy: LoanPolicy) -> "Loan":
        return replace(self, loan_policy=loan_policy)

    def with_overdue_fine_policy(self, overdue_fine_policy: OverdueFinePolicy) -> "Loan":
        return replace(self, overdue_fine_policy=overdue_fine_policy)


@dataclass(frozen=True)
class OpeningHour:
    """One open interval within a day; either boundary may be missing"""

    start_time: Optional[time]
    end_time: Optional[time]

    def duration_minutes(self) -> int:
        """Open minutes, or 0 when the interval is incomplete or inverted"""
        if self.start_time is None or self.end_time is None:
            return 0

        start = self.start_time.hour * MINUTES_PER_HOUR + self.start_time.minute
        end = self.end_time.hour * MINUTES_PER_HOUR + self.end_time.minute
        return max(end - start, 0)


@dataclass(frozen=True)
class OpeningDay:
    """Service point opening hours for a single calendar day"""

    day: Optional[date]
    opening_hours: List[OpeningHour] = field(default_factory=list)
    all_day: bool = False
    open: bool = True

    def duration_minutes(self) -> int:
        if not self.open:
            return 0
        if self.all_day:
            return MINUTES_PER_DAY
        return sum(hour.duration_minutes() for hour in self.opening_hours)

