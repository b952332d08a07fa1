"""Base HTTP client for storage modules behind the Okapi gateway"""

import logging
from typing import Any, Callable, Dict, Optional

import httpx

from circulation_gateway.config import settings
from circulation_gateway.domain.exceptions import DomainException, ServerError, StorageUnavailableError
from circulation_gateway.infrastructure.observability.metrics import storage_request_histogram

logger = logging.getLogger(__name__)


class StorageClient:
    """
    Issues tenant-scoped GET requests.

    Timeouts and connection failures become StorageUnavailableError. No
    request is retried: retry policy belongs to the transport in front of
    this service.
    """

    def __init__(
        self,
        base_url: str | None = None,
        tenant: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.okapi_url).rstrip("/")
        self.tenant = tenant or settings.okapi_tenant
        self.token = token if token is not None else settings.okapi_token
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"X-Okapi-Tenant": self.tenant, "Accept": "application/json"}
        if self.token:
            headers["X-Okapi-Token"] = self.token
        return headers

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                with storage_request_histogram.labels(path=path.split("/")[1]).time():
                    return await client.get(f"{self.base_url}{path}", params=params, headers=self._headers())
            except httpx.TimeoutException as e:
                raise StorageUnavailableError(f"Timed out after {self.timeout}s fetching {path}") from e
            except httpx.RequestError as e:
                raise StorageUnavailableError(f"Failed to contact storage module: {e}") from e

    async def fetch_record(
        self,
        path: str,
        record_type: str,
        on_not_found: Callable[[httpx.Response], Optional[DomainException]],
    ) -> Optional[Dict[str, Any]]:
        """
        Fetch a single record.

        200 returns the body. 404 raises what on_not_found returns, or
        returns None when it returns None. Anything else is a server error.
        """
        logger.info("Fetching record", extra={"record_type": record_type, "path": path})
        response = await self.get(path)

        if response.status_code == 200:
            try:
                return response.json()
            except ValueError as e:
                raise ServerError(f"Invalid {record_type} representation: {e}") from e

        if response.status_code == 404:
            failure = on_not_found(response)
            if failure is not None:
                raise failure
            return None

        raise ServerError(
            f"Failed to fetch {record_type} ({response.status_code}): {response.text}"
        )


def none_when_not_found(response: httpx.Response) -> None:
    return None
