"""
Tests for the order service HTTP client.
"""

import httpx
import pytest

from ordertrack.app.models.order_enums import OrderStatus
from ordertrack.client.api_client import OrdersApiClient
from ordertrack.client.errors import ApiError
from ordertrack.tests.factories import create_order


@pytest.mark.asyncio
async def test_get_order_and_timeline(client, api):
    created = await create_order(client, orderNumber="ORD-42")

    order = await api.get_order(created["id"])
    tracking = await api.get_tracking(created["id"])

    assert order.order_number == "ORD-42"
    assert order.status == OrderStatus.PENDING
    assert tracking["orderNumber"] == "ORD-42"
    assert [e["eventType"] for e in tracking["events"]] == ["LABEL_CREATED"]


@pytest.mark.asyncio
async def test_update_status_sends_camel_case_reason(client, api):
    created = await create_order(client)

    order = await api.update_order_status(created["id"], OrderStatus.CANCELLED, "Duplicate order")

    assert order.status == OrderStatus.CANCELLED
    assert order.cancellation_reason == "Duplicate order"


@pytest.mark.asyncio
async def test_error_body_becomes_api_error(api):
    with pytest.raises(ApiError) as exc_info:
        await api.get_order(777)

    assert exc_info.value.status_code == 404
    assert exc_info.value.message == "Order with ID 777 not found"


@pytest.mark.asyncio
async def test_owned_client_is_closed():
    api = OrdersApiClient("http://svc/api", timeout=1.0)
    async with api:
        pass
    assert api._client.is_closed


@pytest.mark.asyncio
async def test_borrowed_client_is_left_open():
    http = httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json=[])), base_url="http://svc/api"
    )
    async with OrdersApiClient(client=http) as api:
        assert await api.get_all_orders() == []
    assert not http.is_closed
    await http.aclose()


@pytest.mark.asyncio
async def test_non_json_success_becomes_api_error():
    http = httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(200, text="<html>maintenance</html>")),
        base_url="http://svc/api",
    )
    async with OrdersApiClient(client=http) as api:
        with pytest.raises(ApiError) as exc_info:
            await api.get_location_tracking(1)

    assert exc_info.value.status_code == 200
    assert exc_info.value.message == "Invalid response from service"
    await http.aclose()
