"""In-process rules application over a loaded rule table"""

from circulation_gateway.domain.policy_kinds import PolicyKind
from circulation_gateway.domain.rules.matcher import RuleMatcher
from circulation_gateway.domain.rules.models import AppliedRule, MatchCriteria


class LocalRulesApplier:
    """Applies rules with a RuleMatcher instead of calling the rules endpoint"""

    def __init__(self, matcher: RuleMatcher):
        self.matcher = matcher

    async def apply(self, kind: PolicyKind, criteria: MatchCriteria) -> AppliedRule:
        return self.matcher.match_kind(kind, criteria)
