"""Policy resolution for single items and pages of loans"""

import asyncio
from dataclasses import dataclass
from datetime import timezone, tzinfo
from typing import Iterable, List, Tuple

from circulation_gateway.domain.models import Item, Loan, Patron
from circulation_gateway.domain.policies import (
    LoanPolicy,
    LostItemFeePolicy,
    NoticePolicy,
    OverdueFinePolicy,
    RequestPolicy,
)
from circulation_gateway.domain.policy_kinds import PolicyKind
from circulation_gateway.domain.policy_store import (
    FetchPolicyBody,
    FetchSchedule,
    PolicyStore,
    RulesApplier,
    loan_policy_store,
    lost_item_fee_policy_store,
    notice_policy_store,
    overdue_fine_policy_store,
    request_policy_store,
)


@dataclass(frozen=True)
class ResolvedPolicies:
    """Every policy that applies to an item and patron"""

    loan_policy: LoanPolicy
    request_policy: RequestPolicy
    notice_policy: NoticePolicy
    overdue_fine_policy: OverdueFinePolicy
    lost_item_fee_policy: LostItemFeePolicy


class PolicyResolver:
    """Facade over the per-kind policy stores"""

    def __init__(
        self,
        loan_policies: PolicyStore[LoanPolicy],
        request_policies: PolicyStore[RequestPolicy],
        notice_policies: PolicyStore[NoticePolicy],
        overdue_fine_policies: PolicyStore[OverdueFinePolicy],
        lost_item_fee_policies: PolicyStore[LostItemFeePolicy],
    ):
        self.loan_policies = loan_policies
        self.request_policies = request_policies
        self.notice_policies = notice_policies
        self.overdue_fine_policies = overdue_fine_policies
        self.lost_item_fee_policies = lost_item_fee_policies

    @classmethod
    def create(
        cls,
        rules_applier: RulesApplier,
        fetch_body: FetchPolicyBody,
        fetch_schedule: FetchSchedule,
        zone: tzinfo = timezone.utc,
    ) -> "PolicyResolver":
        return cls(
            loan_policy_store(rules_applier, fetch_body, fetch_schedule, zone),
            request_policy_store(rules_applier, fetch_body),
            notice_policy_store(rules_applier, fetch_body),
            overdue_fine_policy_store(rules_applier, fetch_body),
            lost_item_fee_policy_store(rules_applier, fetch_body),
        )

    def store_for(self, kind: PolicyKind) -> PolicyStore:
        return {
            PolicyKind.LOAN: self.loan_policies,
            PolicyKind.REQUEST: self.request_policies,
            PolicyKind.NOTICE: self.notice_policies,
            PolicyKind.OVERDUE_FINE: self.overdue_fine_policies,
            PolicyKind.LOST_ITEM_FEE: self.lost_item_fee_policies,
        }[kind]

    async def resolve(self, item: Item, patron: Patron) -> ResolvedPolicies:
        """Look up all five policies concurrently; the first failure propagates"""
        loan, request, notice, overdue_fine, lost_item_fee = await asyncio.gather(
            self.loan_policies.lookup(item, patron),
            self.request_policies.lookup(item, patron),
            self.notice_policies.lookup(item, patron),
            self.overdue_fine_policies.lookup(item, patron),
            self.lost_item_fee_policies.lookup(item, patron),
        )
        return ResolvedPolicies(loan, request, notice, overdue_fine, lost_item_fee)

    async def attach_loan_policies(self, loan: Loan, item: Item, patron: Patron) -> Loan:
        """Copy of the loan carrying its loan and overdue fine policies"""
        loan_policy, overdue_fine_policy = await asyncio.gather(
            self.loan_policies.lookup(item, patron),
            self.overdue_fine_policies.lookup(item, patron),
        )
        return loan.with_loan_policy(loan_policy).with_overdue_fine_policy(overdue_fine_policy)

    async def resolve_many(self, loans: Iterable[Tuple[Loan, Item, Patron]]) -> List[Loan]:
        """Resolve policies for a page of loans; results keep the input order"""
        return list(
            await asyncio.gather(
                *(self.attach_loan_policies(loan, item, patron) for loan, item, patron in loans)
            )
        )
