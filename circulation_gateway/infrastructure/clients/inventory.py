"""Inventory and user storage clients"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from circulation_gateway.domain.exceptions import ValidationError
from circulation_gateway.domain.models import Item, Location, Patron
from circulation_gateway.infrastructure.clients.storage import StorageClient, none_when_not_found

logger = logging.getLogger(__name__)


class InventoryClient(StorageClient):
    """Builds items with their effective location and loan type"""

    async def fetch_item(self, item_id: str) -> Item:
        """
        Item with its holding and effective location resolved.

        A missing item comes back as Item.not_found rather than an error, so
        that rules application can refuse it with a descriptive message.
        """
        item = await self.fetch_record(f"/item-storage/items/{item_id}", "item", none_when_not_found)
        if item is None:
            return Item.not_found(item_id)

        holding = None
        holdings_record_id = item.get("holdingsRecordId")
        if holdings_record_id:
            holding = await self.fetch_record(
                f"/holdings-storage/holdings/{holdings_record_id}", "holding", none_when_not_found
            )

        location_id = _effective_location_id(item, holding)
        location = await self.fetch_location(location_id) if location_id else None
        if location_id and location is None:
            logger.warning(
                "Could not get location for item",
                extra={"location_id": location_id, "item_id": item_id},
            )

        return Item(
            id=item["id"],
            material_type_id=item.get("materialTypeId"),
            permanent_loan_type_id=item.get("permanentLoanTypeId"),
            temporary_loan_type_id=item.get("temporaryLoanTypeId"),
            holdings_record_id=holdings_record_id if holding else None,
            location=location,
        )

    async def fetch_items(self, item_ids: List[str]) -> List[Item]:
        """Fetch several items concurrently, keeping the requested order"""
        return list(await asyncio.gather(*(self.fetch_item(item_id) for item_id in item_ids)))

    async def fetch_location(self, location_id: str) -> Optional[Location]:
        location = await self.fetch_record(f"/locations/{location_id}", "location", none_when_not_found)
        if location is None:
            return None
        return Location(
            id=location["id"],
            name=location.get("name"),
            campus_id=location.get("campusId"),
            library_id=location.get("libraryId"),
            institution_id=location.get("institutionId"),
            primary_service_point_id=location.get("primaryServicePoint"),
        )


def _effective_location_id(item: Dict[str, Any], holding: Optional[Dict[str, Any]]) -> Optional[str]:
    """Item temporary location, else holding permanent location, else item permanent location"""
    if item.get("temporaryLocationId"):
        return item["temporaryLocationId"]
    if holding and holding.get("permanentLocationId"):
        return holding["permanentLocationId"]
    return item.get("permanentLocationId")


class UserClient(StorageClient):
    async def fetch_patron(self, user_id: str) -> Patron:
        """
        Raises:
            ValidationError: no user has the id
        """
        user = await self.fetch_record(
            f"/users/{user_id}",
            "user",
            lambda response: ValidationError("Could not find user", {"userId": user_id}),
        )
        return Patron(id=user["id"], patron_group_id=user.get("patronGroup"))
