"""Unit tests for load-time policy reference validation"""

import pytest
from unittest.mock import AsyncMock
from circulation_gateway.domain.exceptions import PolicyNotFoundError
from circulation_gateway.domain.policy_kinds import PolicyKind
from circulation_gateway.domain.rules.parser import parse_rules
from circulation_gateway.domain.rules.validation import validate_policy_references

RULES = """priority: t, s, c, b, a, m, g
fallback-policy: l loan-fb r request-fb n notice-fb o fine-fb i lost-fb
m book: l loan-book r request-book n notice-book o fine-book i lost-book
g staff: l loan-fb
"""


async def test_all_references_exist():
    policy_exists = AsyncMock(return_value=True)

    await validate_policy_references(parse_rules(RULES), policy_exists)

    # loan-fb is named twice but only looked up once
    assert policy_exists.await_count == 10


@pytest.mark.parametrize("kind", list(PolicyKind))
async def test_missing_policy_is_named_for_each_kind(kind: PolicyKind):
    """Test an unknown id of any kind fails validation naming that id"""
    missing_id = f"{kind.letter}-missing"
    text = RULES.replace(f" {kind.letter} {_book_id(kind)}", f" {kind.letter} {missing_id}")
    policy_exists = AsyncMock(side_effect=lambda k, policy_id: policy_id != missing_id)

    with pytest.raises(PolicyNotFoundError) as exc_info:
        await validate_policy_references(parse_rules(text), policy_exists)

    error = exc_info.value
    assert error.kind == kind
    assert error.policy_id == missing_id
    assert missing_id in error.message
    assert error.parameters == {"policyType": kind.letter, "policyId": missing_id}


async def test_first_missing_reference_in_line_order_is_reported():
    policy_exists = AsyncMock(side_effect=lambda kind, policy_id: policy_id not in {"fine-book", "request-fb"})

    with pytest.raises(PolicyNotFoundError) as exc_info:
        await validate_policy_references(parse_rules(RULES), policy_exists)

    assert exc_info.value.policy_id == "request-fb"


def _book_id(kind: PolicyKind) -> str:
    return {
        PolicyKind.LOAN: "loan-book",
        PolicyKind.REQUEST: "request-book",
        PolicyKind.NOTICE: "notice-book",
        PolicyKind.OVERDUE_FINE: "fine-book",
        PolicyKind.LOST_ITEM_FEE: "lost-book",
    }[kind]
