"""Typed circulation policies mapped from their storage representations"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from circulation_gateway.domain.exceptions import NoApplicableScheduleError, ValidationError
from circulation_gateway.domain.fixed_due_date_schedule import FixedDueDateSchedule
from circulation_gateway.domain.period import Period


def _decimal(value: Any) -> Decimal:
    return Decimal(str(value)) if value is not None else Decimal("0")


class LoanProfile(str, Enum):
    ROLLING = "Rolling"
    FIXED = "Fixed"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, profile_id: Optional[str]) -> "LoanProfile":
        for profile in cls:
            if profile.value == profile_id:
                return profile
        return cls.UNKNOWN


@dataclass(frozen=True)
class LoanPolicy:
    """
    Loan policy: how long an item may be borrowed and how its due date is set.

    For rolling loans the fixed due date schedule acts as a limit; for
    fixed loans it supplies the due date itself.
    """

    id: str
    name: str
    loanable: bool = True
    profile: LoanProfile = LoanProfile.UNKNOWN
    period: Optional[Period] = None
    grace_period: Optional[Period] = None
    fixed_due_date_schedule_id: Optional[str] = None
    schedule: FixedDueDateSchedule = field(default_factory=lambda: FixedDueDateSchedule([]))

    @classmethod
    def from_representation(cls, representation: Dict[str, Any]) -> "LoanPolicy":
        loans_policy = representation.get("loansPolicy") or {}
        return cls(
            id=representation["id"],
            name=representation.get("name", ""),
            loanable=representation.get("loanable", True),
            profile=LoanProfile.parse(loans_policy.get("profileId")),
            period=Period.from_representation(loans_policy.get("period")),
            grace_period=Period.from_representation(loans_policy.get("gracePeriod")),
            fixed_due_date_schedule_id=loans_policy.get("fixedDueDateScheduleId"),
        )

    def with_schedule(self, schedule: FixedDueDateSchedule) -> "LoanPolicy":
        return replace(self, schedule=schedule)

    def has_grace_period(self) -> bool:
        return self.grace_period is not None and self.grace_period.to_minutes() > 0

    def calculate_initial_due_date(self, loan_date: datetime) -> datetime:
        """
        Due date for a new loan made at loan_date.

        Raises:
            ValidationError: item not loanable, unrecognised profile or period
            NoApplicableScheduleError: loan date outside the policy's schedule
        """
        if not self.loanable:
            raise ValidationError("Item is not loanable", {"loanPolicyId": self.id})

        if self.profile is LoanProfile.ROLLING:
            return self._rolling_due_date(loan_date)
        if self.profile is LoanProfile.FIXED:
            return self._fixed_due_date(loan_date)

        raise ValidationError(
            "Loan profile in the loan policy is not recognised",
            {"loanPolicyId": self.id},
        )

    def _rolling_due_date(self, loan_date: datetime) -> datetime:
        if self.period is None or not self.period.is_recognised:
            raise ValidationError(
                "Loan period in the loan policy is not recognised",
                {"loanPolicyId": self.id},
            )

        rolling = self.period.add_to(loan_date)
        return self.schedule.truncate(
            rolling,
            loan_date,
            lambda: NoApplicableScheduleError(
                "loan date falls outside of the date ranges in the loan policy",
                {"loanPolicyId": self.id},
            ),
        )

    def _fixed_due_date(self, loan_date: datetime) -> datetime:
        due_date = self.schedule.due_date_for(loan_date)
        if due_date is None:
            raise NoApplicableScheduleError(
                "Item can't be checked out as the loan date falls outside of "
                "the date ranges in the loan policy",
                {"loanPolicyId": self.id},
            )
        return due_date


@dataclass(frozen=True)
class RequestPolicy:
    id: str
    name: str
    request_types: List[str] = field(default_factory=list)

    @classmethod
    def from_representation(cls, representation: Dict[str, Any]) -> "RequestPolicy":
        return cls(
            id=representation["id"],
            name=representation.get("name", ""),
            request_types=list(representation.get("requestTypes", [])),
        )

    def allows(self, request_type: str) -> bool:
        return request_type in self.request_types


@dataclass(frozen=True)
class NoticeConfiguration:
    """Which template is sent for which event"""

    template_id: str
    send_when: Optional[str] = None
    real_time: bool = False


@dataclass(frozen=True)
class NoticePolicy:
    id: str
    name: str
    active: bool = True
    loan_notices: List[NoticeConfiguration] = field(default_factory=list)
    request_notices: List[NoticeConfiguration] = field(default_factory=list)

    @classmethod
    def from_representation(cls, representation: Dict[str, Any]) -> "NoticePolicy":
        def notices(key: str) -> List[NoticeConfiguration]:
            return [
                NoticeConfiguration(
                    template_id=notice["templateId"],
                    send_when=(notice.get("sendOptions") or {}).get("sendWhen"),
                    real_time=notice.get("realTime", False),
                )
                for notice in representation.get(key, [])
            ]

        return cls(
            id=representation["id"],
            name=representation.get("name", ""),
            active=representation.get("active", True),
            loan_notices=notices("loanNotices"),
            request_notices=notices("requestNotices"),
        )

    def templates_for(self, send_when: str) -> List[str]:
        return [
            notice.template_id
            for notice in self.loan_notices + self.request_notices
            if notice.send_when == send_when
        ]


@dataclass(frozen=True)
class FineRate:
    """Amount charged per interval, e.g. 5.00 per day"""

    amount: Decimal
    interval: Period

    @classmethod
    def from_representation(cls, representation: Optional[Dict[str, Any]]) -> Optional["FineRate"]:
        if not representation:
            return None
        return cls(
            amount=_decimal(representation.get("quantity")),
            interval=Period.from_values(1, representation.get("intervalId")),
        )


@dataclass(frozen=True)
class OverdueFinePolicy:
    """
    Overdue fine policy.

    count_closed and ignore_grace_period_for_recalls are tri-state: None
    means the policy record does not say.
    """

    id: str
    name: str
    overdue_fine: Optional[FineRate] = None
    max_overdue_fine: Decimal = Decimal("0")
    overdue_recall_fine: Optional[FineRate] = None
    max_overdue_recall_fine: Decimal = Decimal("0")
    count_closed: Optional[bool] = None
    ignore_grace_period_for_recalls: Optional[bool] = None
    forgive_fine_on_renewal: bool = False

    @classmethod
    def from_representation(cls, representation: Dict[str, Any]) -> "OverdueFinePolicy":
        return cls(
            id=representation["id"],
            name=representation.get("name", ""),
            overdue_fine=FineRate.from_representation(representation.get("overdueFine")),
            max_overdue_fine=_decimal(representation.get("maxOverdueFine")),
            overdue_recall_fine=FineRate.from_representation(representation.get("overdueRecallFine")),
            max_overdue_recall_fine=_decimal(representation.get("maxOverdueRecallFine")),
            count_closed=representation.get("countClosed"),
            ignore_grace_period_for_recalls=representation.get("gracePeriodRecall"),
            forgive_fine_on_renewal=representation.get("forgiveOverdueFine", False),
        )


@dataclass(frozen=True)
class LostItemFeePolicy:
    id: str
    name: str
    item_aged_lost_overdue: Optional[Period] = None
    charge_type: Optional[str] = None
    item_charge_amount: Decimal = Decimal("0")
    processing_fee: Decimal = Decimal("0")
    charge_processing_fee: bool = False

    @classmethod
    def from_representation(cls, representation: Dict[str, Any]) -> "LostItemFeePolicy":
        charge = representation.get("chargeAmountItem") or {}
        return cls(
            id=representation["id"],
            name=representation.get("name", ""),
            item_aged_lost_overdue=Period.from_representation(representation.get("itemAgedLostOverdue")),
            charge_type=charge.get("chargeType"),
            item_charge_amount=_decimal(charge.get("amount")),
            processing_fee=_decimal(representation.get("lostItemProcessingFee")),
            charge_processing_fee=representation.get("chargeAmountItemPatron", False),
        )

    def aged_to_lost_date(self, due_date: datetime) -> Optional[datetime]:
        """When an overdue item is declared lost, if the policy ages items at all"""
        if self.item_aged_lost_overdue is None or not self.item_aged_lost_overdue.is_recognised:
            return None
        return self.item_aged_lost_overdue.add_to(due_date)
