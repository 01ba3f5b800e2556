"""
HTTP client for the order service.

Thin async wrapper over ``httpx.AsyncClient``: one method per endpoint the
tracking consumer uses, with the service's ``{"error": ...}`` body turned
into an ``ApiError`` carrying that message verbatim.
"""

import logging
from typing import Any, List, Optional

import httpx

from ordertrack.app.core.config import settings
from ordertrack.app.models.order_enums import OrderStatus
from ordertrack.app.schemas.order import OrderResponse
from ordertrack.client.errors import ApiError

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return response.text or f"Request failed with status {response.status_code}"


class OrdersApiClient:
    """
    Order service client.

    Pass ``client`` to reuse an existing ``httpx.AsyncClient`` (tests hand in
    one bound to the ASGI app); otherwise one is created for ``base_url``.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url or settings.tracking_base_url,
            timeout=timeout or settings.poll_timeout_seconds,
            headers={"Content-Type": "application/json"},
        )

    async def __aenter__(self) -> "OrdersApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        response = await self._client.request(method, path, **kwargs)
        if response.is_error:
            message = _error_message(response)
            logger.debug("%s %s -> %s: %s", method, path, response.status_code, message)
            raise ApiError(message, status_code=response.status_code)
        try:
            return response.json()
        except ValueError as exc:
            logger.debug("%s %s -> %s: body is not JSON (%s)", method, path, response.status_code, exc)
            raise ApiError("Invalid response from service", status_code=response.status_code) from exc

    async def get_all_orders(self) -> List[OrderResponse]:
        payload = await self._request("GET", "/orders/all")
        return [OrderResponse.model_validate(item) for item in payload]

    async def get_order(self, order_id: int) -> OrderResponse:
        return OrderResponse.model_validate(await self._request("GET", f"/orders/{order_id}"))

    async def update_order_status(
        self,
        order_id: int,
        status: OrderStatus,
        cancellation_reason: Optional[str] = None,
    ) -> OrderResponse:
        body = {"status": OrderStatus(status).value}
        if cancellation_reason:
            body["cancellationReason"] = cancellation_reason
        return OrderResponse.model_validate(await self._request("PATCH", f"/orders/{order_id}/status", json=body))

    async def get_tracking(self, order_id: int) -> dict:
        return await self._request("GET", f"/orders/{order_id}/tracking")

    async def get_location_tracking(self, order_id: int) -> dict:
        return await self._request("GET", f"/orders/{order_id}/location-tracking")
