"""
Loader for the line-oriented circulation rules text.

    priority: t, s, c, b, a, m, g
    fallback-policy: l <id> r <id> n <id> o <id> i <id>
    m book, dvd + g staff: l <id> r <id> n <id> o <id> i <id>

Each criteria line is one or more "<letter> <value>[, <value>...]" groups
joined by "+", followed by ":" and the policies it assigns. "#" starts a
comment. The value "all" matches anything.
"""

import re
from typing import Dict, List, Optional, Tuple

from circulation_gateway.domain.exceptions import CirculationRulesError
from circulation_gateway.domain.policy_kinds import PolicyKind
from circulation_gateway.domain.rules.matcher import RuleMatcher
from circulation_gateway.domain.rules.models import (
    DEFAULT_PRIORITY,
    CirculationRule,
    Criterion,
    CriterionType,
)

PRIORITY_PREFIX = "priority:"
FALLBACK_PREFIX = "fallback-policy:"
PRIORITY_KEYWORDS = {"number-of-criteria", "criterium", "first-line", "last-line"}

_SEPARATORS = re.compile(r"[\s,()]+")


def parse_rules(text: str) -> RuleMatcher:
    """
    Parse rules text into a matcher.

    Raises:
        CirculationRulesError: on any syntax error, a missing or repeated
            fallback-policy line, or a policy letter without an id
    """
    priority = DEFAULT_PRIORITY
    last_line_wins = False
    fallback: Optional[CirculationRule] = None
    rules: List[CirculationRule] = []

    for line_number, raw_line in enumerate(text.splitlines(), start=1):
        tab = raw_line.find("\t")
        if tab >= 0:
            raise CirculationRulesError(
                "Tab character found, use spaces for indentation", line=line_number, column=tab + 2
            )

        line = raw_line.split("#", 1)[0].strip()
        if not line:
            continue

        if line.startswith(PRIORITY_PREFIX):
            priority, last_line_wins = _parse_priority(line[len(PRIORITY_PREFIX):], line_number)
        elif line.startswith(FALLBACK_PREFIX):
            if fallback is not None:
                raise CirculationRulesError("Only one fallback-policy line is allowed", line=line_number)
            policy_ids = _parse_policies(line[len(FALLBACK_PREFIX):], line_number)
            fallback = CirculationRule(criteria=(), policy_ids=policy_ids, line=line_number, is_fallback=True)
        else:
            rules.append(_parse_rule_line(line, line_number))

    if fallback is None:
        raise CirculationRulesError("Must contain one fallback-policy line")

    return RuleMatcher(rules, fallback, priority=priority, last_line_wins=last_line_wins)


def _parse_priority(body: str, line_number: int) -> Tuple[Tuple[CriterionType, ...], bool]:
    letters: List[CriterionType] = []
    last_line_wins = False

    for token in filter(None, _SEPARATORS.split(body)):
        if token in PRIORITY_KEYWORDS:
            last_line_wins = last_line_wins or token == "last-line"
            continue
        letters.append(_criterion_type(token, line_number))

    # Letters the directive leaves out keep their default relative order
    letters.extend(letter for letter in DEFAULT_PRIORITY if letter not in letters)
    return tuple(letters), last_line_wins


def _parse_rule_line(line: str, line_number: int) -> CirculationRule:
    if ":" not in line:
        raise CirculationRulesError("Expected ':' after the rule criteria", line=line_number)

    criteria_part, policies_part = line.split(":", 1)
    criteria: List[Criterion] = []

    for group in criteria_part.split("+"):
        tokens = [token for token in _SEPARATORS.split(group) if token]
        if not tokens:
            raise CirculationRulesError("Empty criterium before '+' or ':'", line=line_number)

        letter, values = tokens[0], tokens[1:]
        if not values:
            raise CirculationRulesError(f"Criterium {letter} has no values", line=line_number)
        criteria.append(Criterion(type=_criterion_type(letter, line_number), values=frozenset(values)))

    policy_ids = _parse_policies(policies_part, line_number)
    if not policy_ids:
        raise CirculationRulesError("A rule must name at least one policy", line=line_number)

    return CirculationRule(criteria=tuple(criteria), policy_ids=policy_ids, line=line_number)


def _parse_policies(body: str, line_number: int) -> Dict[PolicyKind, str]:
    tokens = body.split()
    policy_ids: Dict[PolicyKind, str] = {}

    position = 0
    while position < len(tokens):
        letter = tokens[position]
        try:
            kind = PolicyKind.from_letter(letter)
        except ValueError:
            raise CirculationRulesError(f"Unknown policy type {letter}", line=line_number) from None

        if kind in policy_ids:
            raise CirculationRulesError(f"Policy type {letter} is given more than once", line=line_number)

        policy_id = tokens[position + 1] if position + 1 < len(tokens) else ""
        if not policy_id or _is_policy_letter(policy_id):
            raise CirculationRulesError(f"Policy id for type {letter} is missing", line=line_number)

        policy_ids[kind] = policy_id
        position += 2

    return policy_ids


def _criterion_type(letter: str, line_number: int) -> CriterionType:
    try:
        return CriterionType(letter)
    except ValueError:
        raise CirculationRulesError(f"Unknown criterium type {letter}", line=line_number) from None


def _is_policy_letter(token: str) -> bool:
    try:
        PolicyKind.from_letter(token)
    except ValueError:
        return False
    return True
