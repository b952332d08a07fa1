"""Loan date endpoints: initial due date and overdue charge"""

import asyncio
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request

from circulation_gateway.api.dependencies import (
    get_inventory_client,
    get_overdue_calculator,
    get_policy_resolver,
    get_request_id,
    get_user_client,
)
from circulation_gateway.api.v1.schemas import (
    ERROR_RESPONSES,
    DueDateRequest,
    DueDateResponse,
    OverdueRequest,
    OverdueResponse,
)
from circulation_gateway.domain.models import Loan
from circulation_gateway.domain.overdue import OverduePeriodCalculator, calculate_overdue_fine
from circulation_gateway.domain.policy_resolver import PolicyResolver
from circulation_gateway.infrastructure.clients.inventory import InventoryClient, UserClient
from circulation_gateway.infrastructure.observability.logging import log_overdue_calculation
from circulation_gateway.infrastructure.observability.metrics import record_overdue_calculation

router = APIRouter(responses=ERROR_RESPONSES)


def _as_utc(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant


@router.post("/loans/due-date", response_model=DueDateResponse)
async def calculate_due_date(
    request_body: DueDateRequest,
    resolver: PolicyResolver = Depends(get_policy_resolver),
    inventory_client: InventoryClient = Depends(get_inventory_client),
    user_client: UserClient = Depends(get_user_client),
):
    """
    Due date for a loan of the item to the user starting at loan_date.

    Flow:
    1. Fetch item (with holding and location) and user
    2. Apply circulation rules and fetch the loan policy with its schedule
    3. Rolling period from the loan date, capped by the schedule, or the
       fixed schedule's due date
    """
    item, patron = await asyncio.gather(
        inventory_client.fetch_item(request_body.item_id),
        user_client.fetch_patron(request_body.user_id),
    )
    loan_policy = await resolver.loan_policies.lookup(item, patron)
    due_date = loan_policy.calculate_initial_due_date(_as_utc(request_body.loan_date))

    return DueDateResponse(due_date=due_date, loan_policy_id=loan_policy.id)


@router.post("/loans/overdue", response_model=OverdueResponse)
async def calculate_overdue(
    request_body: OverdueRequest,
    request: Request,
    resolver: PolicyResolver = Depends(get_policy_resolver),
    calculator: OverduePeriodCalculator = Depends(get_overdue_calculator),
    inventory_client: InventoryClient = Depends(get_inventory_client),
    user_client: UserClient = Depends(get_user_client),
):
    """
    Billable overdue minutes and fine for a loan.

    Returns applicable=false, rather than an error, when the loan has no
    due date, is not yet due, or its fine policy does not say whether
    closed time counts.
    """
    start_time = time.time()

    item, patron = await asyncio.gather(
        inventory_client.fetch_item(request_body.item_id),
        user_client.fetch_patron(request_body.user_id),
    )
    loan = Loan(
        id=request_body.loan_id,
        item_id=request_body.item_id,
        user_id=request_body.user_id,
        loan_date=_as_utc(request_body.loan_date),
        due_date=_as_utc(request_body.due_date) if request_body.due_date else None,
        due_date_changed_by_recall=request_body.due_date_changed_by_recall,
        checkout_service_point_id=request_body.checkout_service_point_id,
    )
    loan = await resolver.attach_loan_policies(loan, item, patron)

    system_time = _as_utc(request_body.system_time or datetime.now(timezone.utc))
    overdue_minutes = await calculator.count_overdue_minutes(loan, system_time)
    fine_amount = calculate_overdue_fine(loan, overdue_minutes) if overdue_minutes is not None else None

    duration_ms = (time.time() - start_time) * 1000
    record_overdue_calculation(overdue_minutes)
    log_overdue_calculation(
        get_request_id(request),
        loan.id,
        overdue_minutes,
        str(fine_amount) if fine_amount is not None else None,
        duration_ms,
    )

    return OverdueResponse(
        loan_id=loan.id,
        applicable=overdue_minutes is not None,
        overdue_minutes=overdue_minutes,
        fine_amount=fine_amount,
        overdue_fine_policy_id=loan.overdue_fine_policy.id,
    )
