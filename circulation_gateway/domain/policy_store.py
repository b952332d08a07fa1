"""Rule-driven lookup of typed circulation policies"""

import logging
from datetime import timezone, tzinfo
from typing import Any, Awaitable, Callable, Dict, Generic, Optional, Protocol, TypeVar

from circulation_gateway.domain.exceptions import PolicyNotFoundError, UnableToApplyRulesError
from circulation_gateway.domain.fixed_due_date_schedule import FixedDueDateSchedule
from circulation_gateway.domain.models import Item, Patron
from circulation_gateway.domain.policies import (
    LoanPolicy,
    LostItemFeePolicy,
    NoticePolicy,
    OverdueFinePolicy,
    RequestPolicy,
)
from circulation_gateway.domain.policy_kinds import PolicyKind
from circulation_gateway.domain.rules.models import AppliedRule, MatchCriteria

logger = logging.getLogger(__name__)

P = TypeVar("P")

FetchPolicyBody = Callable[[PolicyKind, str], Awaitable[Optional[Dict[str, Any]]]]
FetchSchedule = Callable[[str], Awaitable[Optional[Dict[str, Any]]]]


class RulesApplier(Protocol):
    """Anything that can turn request attributes into a policy id"""

    async def apply(self, kind: PolicyKind, criteria: MatchCriteria) -> AppliedRule:
        ...


def criteria_for(item: Item, patron: Patron) -> MatchCriteria:
    """
    Build match criteria, refusing records rules cannot be applied to.

    Raises:
        UnableToApplyRulesError: unknown item, holding or location
    """
    if not item.found:
        raise UnableToApplyRulesError("Unable to apply circulation rules for unknown item")
    if item.does_not_have_holding():
        raise UnableToApplyRulesError("Unable to apply circulation rules for unknown holding")
    if item.location is None:
        raise UnableToApplyRulesError("Unable to apply circulation rules for unknown location")

    return MatchCriteria.from_item_and_patron(item, patron)


class PolicyStore(Generic[P]):
    """
    Resolves, fetches and maps one kind of policy.

    Composed from a rules applier (resolve_id), a body fetcher (fetch_by_id)
    and a mapper (map_body), plus an optional async enrichment step for
    policies that reference other records. Fetched policies are cached by
    id for the lifetime of the store, which is one request.
    """

    def __init__(
        self,
        kind: PolicyKind,
        rules_applier: RulesApplier,
        fetch_body: FetchPolicyBody,
        map_body: Callable[[Dict[str, Any]], P],
        enrich: Optional[Callable[[P], Awaitable[P]]] = None,
    ):
        self.kind = kind
        self.rules_applier = rules_applier
        self._fetch_body = fetch_body
        self._map_body = map_body
        self._enrich = enrich
        self._cache: Dict[str, P] = {}

    async def resolve_id(self, item: Item, patron: Patron) -> AppliedRule:
        criteria = criteria_for(item, patron)
        logger.info(
            "Applying circulation rules",
            extra={
                "policy_type": self.kind.value,
                "loan_type_id": criteria.loan_type_id,
                "location_id": criteria.location_id,
                "material_type_id": criteria.material_type_id,
                "patron_group_id": criteria.patron_group_id,
            },
        )
        return await self.rules_applier.apply(self.kind, criteria)

    async def fetch_by_id(self, policy_id: str) -> Dict[str, Any]:
        """
        Raises:
            PolicyNotFoundError: no policy of this kind has the id
        """
        logger.info("Looking up policy", extra={"policy_type": self.kind.value, "policy_id": policy_id})
        body = await self._fetch_body(self.kind, policy_id)
        if body is None:
            raise PolicyNotFoundError(self.kind, policy_id)
        return body

    def map_body(self, body: Dict[str, Any]) -> P:
        return self._map_body(body)

    async def lookup_by_id(self, policy_id: str) -> P:
        if policy_id not in self._cache:
            policy = self.map_body(await self.fetch_by_id(policy_id))
            if self._enrich is not None:
                policy = await self._enrich(policy)
            self._cache[policy_id] = policy
        return self._cache[policy_id]

    async def lookup(self, item: Item, patron: Patron) -> P:
        applied = await self.resolve_id(item, patron)
        return await self.lookup_by_id(applied.policy_id)


def loan_policy_store(
    rules_applier: RulesApplier,
    fetch_body: FetchPolicyBody,
    fetch_schedule: FetchSchedule,
    zone: tzinfo = timezone.utc,
) -> PolicyStore[LoanPolicy]:
    """Loan policies come with their fixed due date schedule attached"""

    async def attach_schedule(policy: LoanPolicy) -> LoanPolicy:
        if not policy.fixed_due_date_schedule_id:
            return policy
        # A dangling schedule reference behaves like no schedule at all
        representation = await fetch_schedule(policy.fixed_due_date_schedule_id)
        return policy.with_schedule(FixedDueDateSchedule.from_representation(representation, zone))

    return PolicyStore(
        PolicyKind.LOAN, rules_applier, fetch_body, LoanPolicy.from_representation, attach_schedule
    )


def request_policy_store(rules_applier: RulesApplier, fetch_body: FetchPolicyBody) -> PolicyStore[RequestPolicy]:
    return PolicyStore(PolicyKind.REQUEST, rules_applier, fetch_body, RequestPolicy.from_representation)


def notice_policy_store(rules_applier: RulesApplier, fetch_body: FetchPolicyBody) -> PolicyStore[NoticePolicy]:
    return PolicyStore(PolicyKind.NOTICE, rules_applier, fetch_body, NoticePolicy.from_representation)


def overdue_fine_policy_store(
    rules_applier: RulesApplier, fetch_body: FetchPolicyBody
) -> PolicyStore[OverdueFinePolicy]:
    return PolicyStore(PolicyKind.OVERDUE_FINE, rules_applier, fetch_body, OverdueFinePolicy.from_representation)


def lost_item_fee_policy_store(
    rules_applier: RulesApplier, fetch_body: FetchPolicyBody
) -> PolicyStore[LostItemFeePolicy]:
    return PolicyStore(PolicyKind.LOST_ITEM_FEE, rules_applier, fetch_body, LostItemFeePolicy.from_representation)
