"""Policy and fixed due date schedule storage client"""

from typing import Any, Dict, Optional

from circulation_gateway.domain.policy_kinds import PolicyKind
from circulation_gateway.infrastructure.clients.storage import StorageClient, none_when_not_found
from circulation_gateway.infrastructure.observability.metrics import policy_fetch_failures_counter

POLICY_PATHS = {
    PolicyKind.LOAN: "/loan-policy-storage/loan-policies",
    PolicyKind.REQUEST: "/request-policy-storage/request-policies",
    PolicyKind.NOTICE: "/patron-notice-policy-storage/patron-notice-policies",
    PolicyKind.OVERDUE_FINE: "/overdue-fines-policies",
    PolicyKind.LOST_ITEM_FEE: "/lost-item-fees-policies",
}

FIXED_DUE_DATE_SCHEDULES_PATH = "/fixed-due-date-schedule-storage/fixed-due-date-schedules"


class PolicyStorageClient(StorageClient):
    """Fetches policy bodies by kind and id"""

    async def fetch_policy(self, kind: PolicyKind, policy_id: str) -> Optional[Dict[str, Any]]:
        """Policy body, or None when storage has no such policy"""
        try:
            return await self.fetch_record(
                f"{POLICY_PATHS[kind]}/{policy_id}", f"{kind.value} policy", none_when_not_found
            )
        except Exception:
            policy_fetch_failures_counter.labels(policy_type=kind.value).inc()
            raise

    async def fetch_schedule(self, schedule_id: str) -> Optional[Dict[str, Any]]:
        return await self.fetch_record(
            f"{FIXED_DUE_DATE_SCHEDULES_PATH}/{schedule_id}", "fixed due date schedule", none_when_not_found
        )
