"""Priority-ordered evaluation of a circulation rule table"""

import logging
from typing import Dict, List, Tuple

from circulation_gateway.domain.exceptions import CirculationRulesError
from circulation_gateway.domain.policy_kinds import PolicyKind
from circulation_gateway.domain.rules.models import (
    DEFAULT_PRIORITY,
    AppliedRule,
    CirculationRule,
    CriterionType,
    MatchCriteria,
)

logger = logging.getLogger(__name__)


class RuleMatcher:
    """
    Matches request attributes against a rule table.

    Rules are ordered once, at construction, from most to least specific;
    rules of equal specificity keep their declaration order (or the reverse
    when the table asks for last-line precedence). Matching is then a linear
    scan: for each policy kind the first matching rule that names the kind
    wins, and the fallback rule supplies whatever is left.
    """

    def __init__(
        self,
        rules: List[CirculationRule],
        fallback: CirculationRule,
        priority: Tuple[CriterionType, ...] = DEFAULT_PRIORITY,
        last_line_wins: bool = False,
    ):
        missing = [kind for kind in PolicyKind if not fallback.policy_ids.get(kind)]
        if missing:
            raise CirculationRulesError(
                f"fallback-policy must name a {missing[0].label.lower()} policy",
                line=fallback.line,
            )

        declared = list(reversed(rules)) if last_line_wins else list(rules)
        # sorted() is stable, so equally specific rules keep declaration order
        self.rules = sorted(declared, key=lambda rule: rule.specificity(priority), reverse=True)
        self.fallback = fallback
        self.priority = priority

    def match_kind(self, kind: PolicyKind, criteria: MatchCriteria) -> AppliedRule:
        for rule in self.rules:
            policy_id = rule.policy_ids.get(kind)
            if policy_id and rule.matches(criteria):
                logger.debug(
                    "Circulation rule matched",
                    extra={"policy_type": kind.value, "line": rule.line, "policy_id": policy_id},
                )
                return AppliedRule(kind=kind, policy_id=policy_id, conditions=rule.conditions())

        return AppliedRule(kind=kind, policy_id=self.fallback.policy_ids[kind], conditions=[])

    def match(self, criteria: MatchCriteria) -> Dict[PolicyKind, AppliedRule]:
        """Resolve a policy id for every policy kind"""
        return {kind: self.match_kind(kind, criteria) for kind in PolicyKind}

    def referenced_policy_ids(self) -> List[Tuple[PolicyKind, str, int]]:
        """(kind, policy id, line) for every policy the table names, in line order"""
        all_rules = sorted(self.rules + [self.fallback], key=lambda rule: rule.line)
        return [
            (kind, policy_id, rule.line)
            for rule in all_rules
            for kind, policy_id in rule.policy_ids.items()
        ]
