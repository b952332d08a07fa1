"""Circulation rules storage and rules-application client"""

import logging

from circulation_gateway.domain.exceptions import (
    CirculationRulesError,
    ForwardedFailure,
    ServerError,
    UnableToApplyRulesError,
)
from circulation_gateway.domain.policy_kinds import PolicyKind
from circulation_gateway.domain.rules.matcher import RuleMatcher
from circulation_gateway.domain.rules.models import AppliedRule, MatchCriteria
from circulation_gateway.domain.rules.parser import parse_rules
from circulation_gateway.infrastructure.clients.storage import StorageClient
from circulation_gateway.infrastructure.observability.metrics import rule_application_counter

logger = logging.getLogger(__name__)

RULES_STORAGE_PATH = "/circulation-rules-storage"
RULES_APPLICATION_PATH = "/circulation/rules"


class CirculationRulesClient(StorageClient):
    """Reads the rule table text and calls the rules-application endpoint"""

    async def fetch_rules_text(self) -> str:
        body = await self.fetch_record(
            RULES_STORAGE_PATH,
            "circulation rules",
            lambda response: ServerError("Circulation rules storage has no rules"),
        )
        return body.get("rulesAsText", "")

    async def load_matcher(self) -> RuleMatcher:
        """
        Raises:
            CirculationRulesError: stored rules text does not parse
        """
        text = await self.fetch_rules_text()
        try:
            return parse_rules(text)
        except CirculationRulesError:
            logger.error("Stored circulation rules are invalid")
            raise

    async def apply_rules(self, kind: PolicyKind, criteria: MatchCriteria) -> AppliedRule:
        """
        Raises:
            UnableToApplyRulesError: the rules endpoint is missing (404)
            ForwardedFailure: any other non-200 response
        """
        response = await self.get(
            f"{RULES_APPLICATION_PATH}/{kind.value}-policy",
            params={
                "loan_type_id": criteria.loan_type_id,
                "location_id": criteria.location_id,
                "item_type_id": criteria.material_type_id,
                "patron_type_id": criteria.patron_group_id,
            },
        )

        if response.status_code == 404:
            rule_application_counter.labels(policy_type=kind.value, outcome="error").inc()
            raise UnableToApplyRulesError("Unable to apply circulation rules")
        if response.status_code != 200:
            rule_application_counter.labels(policy_type=kind.value, outcome="error").inc()
            raise ForwardedFailure(response.status_code, response.text)

        body = response.json()
        logger.info("Rules response", extra={"policy_type": kind.value, "body": body})
        rule_application_counter.labels(policy_type=kind.value, outcome="applied").inc()

        return AppliedRule(
            kind=kind,
            policy_id=body[kind.id_property],
            conditions=list(body.get("conditions", [])),
        )


class RemoteRulesApplier:
    """Rules applier backed by the rules-application endpoint"""

    def __init__(self, client: CirculationRulesClient):
        self.client = client

    async def apply(self, kind: PolicyKind, criteria: MatchCriteria) -> AppliedRule:
        return await self.client.apply_rules(kind, criteria)
