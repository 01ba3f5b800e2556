"""
Order API Endpoints.

Admin lifecycle management and the customer-facing tracking endpoints.
Status changes go exclusively through the transition table.
"""

from fastapi import APIRouter, Depends, Path, Body, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from ordertrack.app.db.session import get_db
from ordertrack.app.domain.orders.order_service import OrderService
from ordertrack.app.schemas.order import OrderCreate, OrderResponse, StatusUpdateRequest
from ordertrack.app.schemas.tracking import LocationTrackingResponse, TrackingResponse

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    data: OrderCreate = Body(...),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a PENDING order.

    Stands in for checkout; carries the pickup and delivery coordinates
    used by live tracking.
    """
    return await OrderService.create_order(db, data)


@router.get("/all", response_model=List[OrderResponse])
async def list_all_orders(db: AsyncSession = Depends(get_db)):
    """
    List all orders, newest first (admin).

    Drives the status transition UI.
    """
    return await OrderService.list_orders(db)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: int = Path(..., description="Order ID"),
    db: AsyncSession = Depends(get_db)
):
    return await OrderService.get_order(db, order_id)


@router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: int = Path(..., description="Order ID"),
    request: StatusUpdateRequest = Body(...),
    db: AsyncSession = Depends(get_db)
):
    """
    Change an order's status.

    Validates:
    - Target status is reachable from the current status
    - Cancellation carries a non-blank reason (stored trimmed)

    Returns the updated order, which callers treat as authoritative.
    """
    return await OrderService.update_status(db, order_id, request.status, request.cancellation_reason)


@router.get("/{order_id}/tracking", response_model=TrackingResponse)
async def get_tracking(
    order_id: int = Path(..., description="Order ID"),
    db: AsyncSession = Depends(get_db)
):
    """Order status with its ordered lifecycle timeline."""
    return await OrderService.build_tracking(db, order_id)


@router.get("/{order_id}/location-tracking", response_model=LocationTrackingResponse)
async def get_location_tracking(
    order_id: int = Path(..., description="Order ID"),
    db: AsyncSession = Depends(get_db)
):
    """
    Live delivery location for an order.

    Returns ``trackingEnabled: false`` with no locations until a delivery
    agent has accepted the order.
    """
    return await OrderService.build_location_tracking(db, order_id)
