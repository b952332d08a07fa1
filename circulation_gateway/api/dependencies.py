"""Dependency injection for FastAPI endpoints"""

from zoneinfo import ZoneInfo

from fastapi import Depends, Request

from circulation_gateway.config import settings
from circulation_gateway.domain.overdue import OverduePeriodCalculator
from circulation_gateway.domain.policy_resolver import PolicyResolver
from circulation_gateway.domain.policy_store import RulesApplier
from circulation_gateway.domain.rules.applier import LocalRulesApplier
from circulation_gateway.infrastructure.clients.calendar import CalendarClient
from circulation_gateway.infrastructure.clients.circulation_rules import (
    CirculationRulesClient,
    RemoteRulesApplier,
)
from circulation_gateway.infrastructure.clients.inventory import InventoryClient, UserClient
from circulation_gateway.infrastructure.clients.policies import PolicyStorageClient


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_zone() -> ZoneInfo:
    """Zone fixed due date schedules are expressed in"""
    return ZoneInfo(settings.timezone)


def get_rules_client() -> CirculationRulesClient:
    return CirculationRulesClient()


def get_policy_client() -> PolicyStorageClient:
    return PolicyStorageClient()


def get_inventory_client() -> InventoryClient:
    return InventoryClient()


def get_user_client() -> UserClient:
    return UserClient()


def get_calendar_client() -> CalendarClient:
    return CalendarClient()


async def get_rules_applier(
    rules_client: CirculationRulesClient = Depends(get_rules_client),
) -> RulesApplier:
    """Rule table is loaded per request so rule changes apply immediately"""
    if settings.circulation_rules_source == "remote":
        return RemoteRulesApplier(rules_client)
    return LocalRulesApplier(await rules_client.load_matcher())


def get_policy_resolver(
    rules_applier: RulesApplier = Depends(get_rules_applier),
    policy_client: PolicyStorageClient = Depends(get_policy_client),
    zone: ZoneInfo = Depends(get_zone),
) -> PolicyResolver:
    return PolicyResolver.create(
        rules_applier, policy_client.fetch_policy, policy_client.fetch_schedule, zone
    )


def get_overdue_calculator(
    calendar_client: CalendarClient = Depends(get_calendar_client),
) -> OverduePeriodCalculator:
    return OverduePeriodCalculator(calendar_client)
