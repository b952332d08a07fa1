"""Service point calendar client"""

from datetime import date, datetime
from typing import Any, Dict, List

from circulation_gateway.domain.exceptions import ServerError
from circulation_gateway.domain.models import OpeningDay, OpeningHour
from circulation_gateway.infrastructure.clients.storage import StorageClient
from circulation_gateway.utils.date_utils import parse_time_of_day

CALENDAR_PERIODS_PATH = "/calendar/periods"


class CalendarClient(StorageClient):
    """Fetches opening days; results are never cached"""

    async def fetch_opening_days(
        self, service_point_id: str, start: datetime, end: datetime
    ) -> List[OpeningDay]:
        response = await self.get(
            CALENDAR_PERIODS_PATH,
            params={
                "servicePointId": service_point_id,
                "startDate": start.date().isoformat(),
                "endDate": end.date().isoformat(),
                "includeClosedDays": "false",
            },
        )
        if response.status_code == 404:
            return []
        if response.status_code != 200:
            raise ServerError(f"Failed to fetch opening days ({response.status_code}): {response.text}")

        return [
            to_opening_day(period.get("openingDay", {}))
            for period in response.json().get("openingPeriods", [])
        ]


def to_opening_day(representation: Dict[str, Any]) -> OpeningDay:
    raw_date = representation.get("date")
    return OpeningDay(
        day=date.fromisoformat(raw_date[:10]) if raw_date else None,
        opening_hours=[
            OpeningHour(
                start_time=parse_time_of_day(hour.get("startTime")),
                end_time=parse_time_of_day(hour.get("endTime")),
            )
            for hour in representation.get("openingHour", [])
        ],
        all_day=representation.get("allDay", False),
        open=representation.get("open", True),
    )
