"""Circulation rules endpoints: apply rules to attributes, validate rules text"""

import time

from fastapi import APIRouter, Depends, Query, Request, Response

from circulation_gateway.api.dependencies import (
    get_inventory_client,
    get_policy_client,
    get_request_id,
    get_rules_applier,
)
from circulation_gateway.api.v1.schemas import ERROR_RESPONSES, RulesValidationRequest
from circulation_gateway.domain.policy_kinds import PolicyKind
from circulation_gateway.domain.policy_store import RulesApplier
from circulation_gateway.domain.rules.models import MatchCriteria
from circulation_gateway.domain.rules.parser import parse_rules
from circulation_gateway.domain.rules.validation import validate_policy_references
from circulation_gateway.infrastructure.clients.inventory import InventoryClient
from circulation_gateway.infrastructure.clients.policies import PolicyStorageClient
from circulation_gateway.infrastructure.observability.logging import log_rule_application

router = APIRouter(responses=ERROR_RESPONSES)


@router.get("/circulation/rules/{kind}-policy")
async def apply_rules(
    kind: PolicyKind,
    request: Request,
    loan_type_id: str = Query(..., description="Loan type of the item"),
    location_id: str = Query(..., description="Effective location of the item"),
    item_type_id: str = Query(..., description="Material type of the item"),
    patron_type_id: str = Query(..., description="Patron group of the borrower"),
    rules_applier: RulesApplier = Depends(get_rules_applier),
    inventory_client: InventoryClient = Depends(get_inventory_client),
):
    """
    Apply the circulation rules to an attribute tuple.

    The location's campus, library and institution are looked up so rules
    on those letters can match.
    """
    start_time = time.time()

    location = await inventory_client.fetch_location(location_id)
    criteria = MatchCriteria(
        loan_type_id=loan_type_id,
        location_id=location_id,
        material_type_id=item_type_id,
        patron_group_id=patron_type_id,
        campus_id=location.campus_id if location else None,
        library_id=location.library_id if location else None,
        institution_id=location.institution_id if location else None,
    )
    applied = await rules_applier.apply(kind, criteria)

    duration_ms = (time.time() - start_time) * 1000
    log_rule_application(get_request_id(request), kind.value, applied.policy_id, applied.conditions, duration_ms)

    return {kind.id_property: applied.policy_id, "conditions": applied.conditions}


@router.post("/circulation/rules/validate", status_code=204)
async def validate_rules(
    body: RulesValidationRequest,
    policy_client: PolicyStorageClient = Depends(get_policy_client),
):
    """
    Check rules text before it is stored.

    Parses the text and confirms every referenced policy exists; failures
    come back as 422 with the offending line or policy id.
    """
    matcher = parse_rules(body.rules_as_text)

    async def policy_exists(kind: PolicyKind, policy_id: str) -> bool:
        return await policy_client.fetch_policy(kind, policy_id) is not None

    await validate_policy_references(matcher, policy_exists)
    return Response(status_code=204)
