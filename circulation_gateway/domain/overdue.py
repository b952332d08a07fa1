"""Overdue period and overdue fine calculation"""

import logging
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Protocol

from circulation_gateway.domain.models import Loan, OpeningDay
from circulation_gateway.utils.date_utils import minutes_between

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


class OpeningDaysProvider(Protocol):
    async def fetch_opening_days(
        self, service_point_id: str, start: datetime, end: datetime
    ) -> List[OpeningDay]:
        ...


def opening_days_duration_minutes(opening_days: List[OpeningDay]) -> int:
    """
    Total open minutes across opening days.

    All-day days count as a full day; otherwise each opening interval adds
    close minus open, with incomplete or inverted intervals adding nothing.
    """
    return sum(day.duration_minutes() for day in opening_days)


class OverduePeriodCalculator:
    """Turns a loan's lateness into billable overdue minutes"""

    def __init__(self, calendar: OpeningDaysProvider):
        self.calendar = calendar

    async def count_overdue_minutes(self, loan: Loan, system_time: datetime) -> Optional[int]:
        """
        Billable overdue minutes for a loan, or None when not applicable.

        Not applicable means the loan has no due date, is not yet due, or
        its overdue fine policy does not say whether closed time counts.
        """
        policy = loan.overdue_fine_policy
        count_closed = policy.count_closed if policy else None

        if not self.preconditions_are_met(loan, system_time, count_closed):
            return None

        overdue_minutes = await self.get_overdue_minutes(loan, system_time, count_closed)
        return self.adjust_overdue_with_grace_period(loan, overdue_minutes)

    def preconditions_are_met(self, loan: Loan, system_time: datetime, count_closed: Optional[bool]) -> bool:
        return loan.due_date is not None and loan.due_date < system_time and count_closed is not None

    async def get_overdue_minutes(self, loan: Loan, system_time: datetime, count_closed: bool) -> int:
        elapsed = minutes_between(loan.due_date, system_time)
        if count_closed:
            return elapsed

        if not loan.checkout_service_point_id:
            logger.warning(
                "Loan has no checkout service point, counting closed time as overdue",
                extra={"loan_id": loan.id},
            )
            return elapsed

        opening_days = await self.calendar.fetch_opening_days(
            loan.checkout_service_point_id, loan.due_date, system_time
        )
        # Whole opening days can overshoot a window that starts or ends mid-day
        return min(opening_days_duration_minutes(opening_days), elapsed)

    def adjust_overdue_with_grace_period(self, loan: Loan, overdue_minutes: int) -> int:
        """
        Waive the whole charge when it falls within the grace period.

        The grace period is not subtracted: overdue minutes are either left
        as they are or reduced to zero. A loan whose due date was changed by
        a recall skips the grace period when the fine policy says to ignore
        it for recalls.
        """
        if not self._grace_period_applies(loan):
            return overdue_minutes

        grace_period_minutes = loan.loan_policy.grace_period.to_minutes()
        return 0 if grace_period_minutes >= overdue_minutes else overdue_minutes

    def _grace_period_applies(self, loan: Loan) -> bool:
        if loan.loan_policy is None or not loan.loan_policy.has_grace_period():
            return False

        policy = loan.overdue_fine_policy
        ignore_for_recalls = policy.ignore_grace_period_for_recalls if policy else None
        return not (loan.due_date_changed_by_recall and ignore_for_recalls is True)


def calculate_overdue_fine(loan: Loan, overdue_minutes: int) -> Decimal:
    """
    Fine owed for overdue minutes under the loan's overdue fine policy.

    Every started interval is charged in full, and the total is capped at
    the policy maximum when one is set. Recalled loans use the recall rate.
    """
    policy = loan.overdue_fine_policy
    if policy is None or overdue_minutes <= 0:
        return Decimal("0.00")

    if loan.due_date_changed_by_recall:
        rate, maximum = policy.overdue_recall_fine, policy.max_overdue_recall_fine
    else:
        rate, maximum = policy.overdue_fine, policy.max_overdue_fine

    if rate is None:
        return Decimal("0.00")

    interval_minutes = rate.interval.to_minutes()
    if interval_minutes <= 0:
        return Decimal("0.00")

    intervals = -(-overdue_minutes // interval_minutes)
    amount = rate.amount * intervals
    if maximum > 0:
        amount = min(amount, maximum)
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)
