"""GET /v1/policies/{kind} - Policy that applies to an item and borrower"""

import asyncio
import time

from fastapi import APIRouter, Depends, Query, Request

from circulation_gateway.api.dependencies import (
    get_inventory_client,
    get_policy_resolver,
    get_request_id,
    get_user_client,
)
from circulation_gateway.api.v1.schemas import ERROR_RESPONSES, PolicyResponse
from circulation_gateway.domain.policy_kinds import PolicyKind
from circulation_gateway.domain.policy_resolver import PolicyResolver
from circulation_gateway.infrastructure.clients.inventory import InventoryClient, UserClient
from circulation_gateway.infrastructure.observability.logging import log_rule_application

router = APIRouter(responses=ERROR_RESPONSES)


@router.get("/policies/{kind}", response_model=PolicyResponse)
async def get_policy(
    kind: PolicyKind,
    request: Request,
    item_id: str = Query(..., description="Item identifier"),
    user_id: str = Query(..., description="Borrower or requester identifier"),
    resolver: PolicyResolver = Depends(get_policy_resolver),
    inventory_client: InventoryClient = Depends(get_inventory_client),
    user_client: UserClient = Depends(get_user_client),
):
    """
    Resolve the policy of one kind for an item and user.

    Fails with 500 when the item, its holding or its location cannot be
    found, and with 422 when the rules name a policy that does not exist.
    """
    start_time = time.time()

    item, patron = await asyncio.gather(
        inventory_client.fetch_item(item_id),
        user_client.fetch_patron(user_id),
    )

    store = resolver.store_for(kind)
    applied = await store.resolve_id(item, patron)
    policy = await store.lookup_by_id(applied.policy_id)

    duration_ms = (time.time() - start_time) * 1000
    log_rule_application(get_request_id(request), kind.value, applied.policy_id, applied.conditions, duration_ms)

    return PolicyResponse(
        policy_type=kind.value,
        policy_id=policy.id,
        name=policy.name,
        conditions=applied.conditions,
    )
