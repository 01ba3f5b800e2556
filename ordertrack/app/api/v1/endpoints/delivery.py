"""
Delivery Agent API Endpoints.

Agents accept orders, move them forward and report GPS samples that
feed live tracking.
"""

from fastapi import APIRouter, Depends, Path, Body
from sqlalchemy.ext.asyncio import AsyncSession

from ordertrack.app.db.session import get_db
from ordertrack.app.domain.orders.order_service import OrderService, point_from_sample
from ordertrack.app.schemas.order import AcceptOrderRequest, AgentStatusUpdate, OrderResponse
from ordertrack.app.schemas.tracking import LocationUpdate, LocationUpdateResponse, SimulationResponse

router = APIRouter(prefix="/delivery", tags=["Delivery Agent"])


@router.post("/orders/{order_id}/accept", response_model=OrderResponse)
async def accept_order(
    order_id: int = Path(..., description="Order ID"),
    request: AcceptOrderRequest = Body(...),
    db: AsyncSession = Depends(get_db)
):
    """
    Accept an order (delivery agent).

    Assigns the agent, moves PROCESSING → ACCEPTED and enables tracking.
    """
    return await OrderService.accept_order(db, order_id, request.agent)


@router.post("/orders/{order_id}/update-status", response_model=OrderResponse)
async def update_delivery_status(
    order_id: int = Path(..., description="Order ID"),
    request: AgentStatusUpdate = Body(...),
    db: AsyncSession = Depends(get_db)
):
    """Move an assigned order to PICKED_UP, OUT_FOR_DELIVERY or DELIVERED."""
    return await OrderService.agent_update_status(db, order_id, request.agent, request.status)


@router.post("/orders/{order_id}/update-location", response_model=LocationUpdateResponse)
async def update_location(
    order_id: int = Path(..., description="Order ID"),
    location: LocationUpdate = Body(...),
    db: AsyncSession = Depends(get_db)
):
    """
    Record a GPS sample (delivery agent).

    Creates breadcrumb trail for live tracking.
    """
    sample = await OrderService.record_location(db, order_id, location)
    return LocationUpdateResponse(
        order_id=order_id,
        sample_id=sample.id,
        location=point_from_sample(sample)
    )


@router.post("/orders/{order_id}/simulate-locations", response_model=SimulationResponse)
async def simulate_locations(
    order_id: int = Path(..., description="Order ID"),
    db: AsyncSession = Depends(get_db)
):
    """Generate a test route from pickup to delivery (for testing only)."""
    samples = await OrderService.simulate_route(db, order_id)
    return SimulationResponse(
        order_id=order_id,
        generated=len(samples),
        current_location=point_from_sample(samples[-1])
    )
