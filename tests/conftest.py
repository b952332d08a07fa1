"""Pytest fixtures for testing"""

from datetime import timezone
from typing import Any, Dict, Tuple
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from circulation_gateway.api.dependencies import (
    get_calendar_client,
    get_inventory_client,
    get_policy_client,
    get_policy_resolver,
    get_rules_applier,
    get_user_client,
)
from circulation_gateway.api.main import create_app
from circulation_gateway.domain.exceptions import ValidationError
from circulation_gateway.domain.models import Item, Location, Patron
from circulation_gateway.domain.policy_kinds import PolicyKind
from circulation_gateway.domain.policy_resolver import PolicyResolver
from circulation_gateway.domain.rules.applier import LocalRulesApplier
from circulation_gateway.domain.rules.parser import parse_rules
from circulation_gateway.infrastructure.clients.calendar import CalendarClient
from circulation_gateway.infrastructure.clients.inventory import InventoryClient, UserClient
from circulation_gateway.infrastructure.clients.policies import PolicyStorageClient

RULES_TEXT = """priority: t, s, c, b, a, m, g
fallback-policy: l loan-fallback r request-fallback n notice-fallback o fine-fallback i lost-fallback

# DVDs go back at the end of term and are charged by the day
m dvd: l loan-dvd o fine-dvd
g staff + m book: l loan-staff-book
"""

SEMESTER_SCHEDULE = {
    "id": "semester",
    "name": "Semester",
    "schedules": [
        {
            "from": "2026-01-01T00:00:00.000Z",
            "to": "2026-05-31T23:59:59.000Z",
            "due": "2026-06-15T23:59:59.000Z",
        },
        {
            "from": "2026-06-01T00:00:00.000Z",
            "to": "2026-12-31T23:59:59.000Z",
            "due": "2027-01-15T23:59:59.000Z",
        },
    ],
}


@pytest.fixture
def main_stacks() -> Location:
    return Location(
        id="main-stacks",
        name="Main Library Stacks",
        campus_id="city-campus",
        library_id="main-library",
        institution_id="university",
        primary_service_point_id="circ-desk",
    )


@pytest.fixture
def book_item(main_stacks: Location) -> Item:
    return Item(
        id="item-book",
        material_type_id="book",
        permanent_loan_type_id="can-circulate",
        holdings_record_id="holding-1",
        location=main_stacks,
    )


@pytest.fixture
def dvd_item(main_stacks: Location) -> Item:
    return Item(
        id="item-dvd",
        material_type_id="dvd",
        permanent_loan_type_id="can-circulate",
        holdings_record_id="holding-2",
        location=main_stacks,
    )


@pytest.fixture
def undergrad() -> Patron:
    return Patron(id="user-undergrad", patron_group_id="undergrad")


@pytest.fixture
def staff() -> Patron:
    return Patron(id="user-staff", patron_group_id="staff")


@pytest.fixture
def policy_bodies() -> Dict[Tuple[PolicyKind, str], Dict[str, Any]]:
    """Storage representations of every policy RULES_TEXT names"""
    return {
        (PolicyKind.LOAN, "loan-fallback"): {
            "id": "loan-fallback",
            "name": "Three week loan",
            "loanable": True,
            "loansPolicy": {
                "profileId": "Rolling",
                "period": {"duration": 3, "intervalId": "Weeks"},
                "gracePeriod": {"duration": 1, "intervalId": "Hours"},
            },
        },
        (PolicyKind.LOAN, "loan-dvd"): {
            "id": "loan-dvd",
            "name": "End of term",
            "loanable": True,
            "loansPolicy": {"profileId": "Fixed", "fixedDueDateScheduleId": "semester"},
        },
        (PolicyKind.LOAN, "loan-staff-book"): {
            "id": "loan-staff-book",
            "name": "Staff six months",
            "loanable": True,
            "loansPolicy": {
                "profileId": "Rolling",
                "period": {"duration": 6, "intervalId": "Months"},
                "fixedDueDateScheduleId": "semester",
            },
        },
        (PolicyKind.REQUEST, "request-fallback"): {
            "id": "request-fallback",
            "name": "Allow all",
            "requestTypes": ["Hold", "Page", "Recall"],
        },
        (PolicyKind.NOTICE, "notice-fallback"): {
            "id": "notice-fallback",
            "name": "Standard notices",
            "active": True,
            "loanNotices": [
                {"templateId": "due-reminder", "sendOptions": {"sendWhen": "Due date"}},
                {"templateId": "checkout-receipt", "sendOptions": {"sendWhen": "Check out"}, "realTime": True},
            ],
            "requestNotices": [
                {"templateId": "hold-available", "sendOptions": {"sendWhen": "Available"}},
            ],
        },
        (PolicyKind.OVERDUE_FINE, "fine-fallback"): {
            "id": "fine-fallback",
            "name": "Quarter per hour",
            "overdueFine": {"quantity": 0.25, "intervalId": "hour"},
            "maxOverdueFine": 10,
            "overdueRecallFine": {"quantity": 1, "intervalId": "hour"},
            "maxOverdueRecallFine": 20,
            "countClosed": True,
            "gracePeriodRecall": False,
            "forgiveOverdueFine": True,
        },
        (PolicyKind.OVERDUE_FINE, "fine-dvd"): {
            "id": "fine-dvd",
            "name": "Dollar per open day",
            "overdueFine": {"quantity": 1, "intervalId": "day"},
            "maxOverdueFine": 5,
            "countClosed": False,
        },
        (PolicyKind.LOST_ITEM_FEE, "lost-fallback"): {
            "id": "lost-fallback",
            "name": "Replacement cost",
            "itemAgedLostOverdue": {"duration": 5, "intervalId": "Weeks"},
            "chargeAmountItem": {"chargeType": "anotherCost", "amount": 45.5},
            "lostItemProcessingFee": 10,
            "chargeAmountItemPatron": True,
        },
    }


@pytest.fixture
def fetch_policy(policy_bodies) -> AsyncMock:
    return AsyncMock(side_effect=lambda kind, policy_id: policy_bodies.get((kind, policy_id)))


@pytest.fixture
def semester_schedule() -> Dict[str, Any]:
    return SEMESTER_SCHEDULE


@pytest.fixture
def fetch_schedule(semester_schedule) -> AsyncMock:
    return AsyncMock(side_effect=lambda schedule_id: semester_schedule if schedule_id == "semester" else None)


@pytest.fixture
def rules_applier() -> LocalRulesApplier:
    return LocalRulesApplier(parse_rules(RULES_TEXT))


@pytest.fixture
def resolver(rules_applier, fetch_policy, fetch_schedule) -> PolicyResolver:
    return PolicyResolver.create(rules_applier, fetch_policy, fetch_schedule, timezone.utc)


@pytest.fixture
def inventory_client(book_item: Item, dvd_item: Item, main_stacks: Location) -> MagicMock:
    items = {item.id: item for item in (book_item, dvd_item)}
    client = MagicMock(spec=InventoryClient)
    client.fetch_item = AsyncMock(side_effect=lambda item_id: items.get(item_id, Item.not_found(item_id)))
    client.fetch_location = AsyncMock(
        side_effect=lambda location_id: main_stacks if location_id == main_stacks.id else None
    )
    return client


@pytest.fixture
def user_client(undergrad: Patron, staff: Patron) -> MagicMock:
    patrons = {patron.id: patron for patron in (undergrad, staff)}

    async def fetch_patron(user_id: str) -> Patron:
        if user_id not in patrons:
            raise ValidationError("Could not find user", {"userId": user_id})
        return patrons[user_id]

    client = MagicMock(spec=UserClient)
    client.fetch_patron = AsyncMock(side_effect=fetch_patron)
    return client


@pytest.fixture
def calendar_client() -> MagicMock:
    """Calendar with no opening days; tests set return_value as needed"""
    client = MagicMock(spec=CalendarClient)
    client.fetch_opening_days = AsyncMock(return_value=[])
    return client


@pytest.fixture
def policy_client(fetch_policy, fetch_schedule) -> MagicMock:
    client = MagicMock(spec=PolicyStorageClient)
    client.fetch_policy = fetch_policy
    client.fetch_schedule = fetch_schedule
    return client


@pytest.fixture
def client(
    rules_applier,
    fetch_policy,
    fetch_schedule,
    inventory_client,
    user_client,
    calendar_client,
    policy_client,
) -> TestClient:
    """Create FastAPI test client with storage modules replaced by mocks"""
    app = create_app()

    def override_get_policy_resolver():
        return PolicyResolver.create(rules_applier, fetch_policy, fetch_schedule, timezone.utc)

    app.dependency_overrides[get_rules_applier] = lambda: rules_applier
    app.dependency_overrides[get_policy_resolver] = override_get_policy_resolver
    app.dependency_overrides[get_inventory_client] = lambda: inventory_client
    app.dependency_overrides[get_user_client] = lambda: user_client
    app.dependency_overrides[get_calendar_client] = lambda: calendar_client
    app.dependency_overrides[get_policy_client] = lambda: policy_client
    return TestClient(app)
