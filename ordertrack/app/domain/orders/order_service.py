"""
Order Service (Domain Logic).

Owns the order lifecycle: every status change goes through the transition
table, cancellation requires a reason, and delivery-agent GPS samples are
only accepted while tracking is enabled.
"""

import logging
import math
import random
import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from ordertrack.app.core.config import settings
from ordertrack.app.core.exceptions import (
    AgentMismatchError,
    InvalidTransitionError,
    LocationOutOfOrderError,
    MissingReasonError,
    OrderAlreadyAssignedError,
    ResourceNotFoundError,
    TrackingNotEnabledError,
)
from ordertrack.app.domain.orders.transitions import is_terminal, is_valid_transition
from ordertrack.app.models.location_sample import LocationSample
from ordertrack.app.models.order import Order
from ordertrack.app.models.order_enums import OrderStatus, TrackingEventType
from ordertrack.app.models.tracking_event import TrackingEvent
from ordertrack.app.schemas.order import OrderCreate
from ordertrack.app.schemas.tracking import (
    LocationPointResponse,
    LocationTrackingResponse,
    LocationUpdate,
    TrackingEventResponse,
    TrackingResponse,
)
from ordertrack.app.services.route_estimation import estimate_route

logger = logging.getLogger(__name__)

# Statuses a delivery agent may request on an order assigned to them
AGENT_STATUSES = frozenset({OrderStatus.PICKED_UP, OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELIVERED})

# Timeline entry written when an order enters the status
STATUS_EVENTS = {
    OrderStatus.PICKED_UP: (TrackingEventType.SHIPMENT_PICKED, "Shipment picked up by delivery agent"),
    OrderStatus.OUT_FOR_DELIVERY: (TrackingEventType.OUT_FOR_DELIVERY, "Out for delivery"),
    OrderStatus.DELIVERED: (TrackingEventType.DELIVERED, "Delivered"),
}

# Fallback endpoints for simulated routes (Bangalore area)
DEFAULT_SIMULATION_PICKUP = (12.9716, 77.5946)
DEFAULT_SIMULATION_DELIVERY = (12.9352, 77.6245)


def to_utc_naive(value: datetime) -> datetime:
    """Normalize to naive UTC, the form every timestamp is stored in."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def bearing_degrees(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Initial compass bearing from the first point to the second."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_lng = math.radians(lng2 - lng1)
    x = math.sin(d_lng) * math.cos(phi2)
    y = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(d_lng)
    return (math.degrees(math.atan2(x, y)) + 360.0) % 360.0


def point_from_sample(sample: LocationSample) -> LocationPointResponse:
    return LocationPointResponse(
        lat=sample.latitude,
        lng=sample.longitude,
        heading=sample.heading or 0.0,
        timestamp=sample.recorded_at,
        address=sample.address,
    )


class OrderService:

    @staticmethod
    async def get_order(db: AsyncSession, order_id: int) -> Order:
        result = await db.execute(select(Order).where(Order.id == order_id))
        order = result.scalar_one_or_none()
        if not order:
            raise ResourceNotFoundError("Order", order_id)
        return order

    @staticmethod
    async def list_orders(db: AsyncSession) -> List[Order]:
        result = await db.execute(select(Order).order_by(Order.created_at.desc(), Order.id.desc()))
        return list(result.scalars().all())

    @staticmethod
    async def create_order(db: AsyncSession, data: OrderCreate) -> Order:
        """
        Create a PENDING order and its LABEL_CREATED timeline entry.

        Args:
            db: Database session
            data: Order details; the order number is generated when omitted

        Returns:
            Created order
        """
        suffix = uuid.uuid4().hex[:10].upper()
        order = Order(
            order_number=data.order_number or f"ORD-{suffix}",
            tracking_id=f"TRK{suffix}",
            courier_name=data.courier_name,
            status=OrderStatus.PENDING,
            delivery_address=data.delivery_address or (data.delivery.address if data.delivery else None),
        )
        if data.pickup:
            order.pickup_latitude = data.pickup.lat
            order.pickup_longitude = data.pickup.lng
            order.pickup_address = data.pickup.address
        if data.delivery:
            order.delivery_latitude = data.delivery.lat
            order.delivery_longitude = data.delivery.lng

        db.add(order)
        await db.flush()

        await OrderService._add_event(
            db, order, TrackingEventType.LABEL_CREATED, "Shipping label created", order.pickup_address
        )
        await db.commit()
        await db.refresh(order)

        logger.info("Created order %s (id=%s)", order.order_number, order.id)
        return order

    @staticmethod
    async def update_status(
        db: AsyncSession,
        order_id: int,
        new_status: OrderStatus,
        cancellation_reason: Optional[str] = None,
    ) -> Order:
        """
        Move an order along one edge of the transition table.

        Raises:
            ResourceNotFoundError: Unknown order
            InvalidTransitionError: ``new_status`` is not reachable from the current status
            MissingReasonError: Cancelling with an empty or blank reason
        """
        order = await OrderService.get_order(db, order_id)
        old_status = order.status

        if not is_valid_transition(old_status, new_status):
            raise InvalidTransitionError(old_status.value, OrderStatus(new_status).value)

        if new_status == OrderStatus.CANCELLED:
            reason = (cancellation_reason or "").strip()
            if not reason:
                raise MissingReasonError()
            order.cancellation_reason = reason

        order.status = new_status

        # Preserve timestamps that were already set
        now = datetime.utcnow()
        if new_status == OrderStatus.PICKED_UP and order.picked_up_at is None:
            order.picked_up_at = now
        if new_status == OrderStatus.OUT_FOR_DELIVERY and order.out_for_delivery_at is None:
            order.out_for_delivery_at = now
        if new_status == OrderStatus.DELIVERED and order.delivered_at is None:
            order.delivered_at = now

        if new_status in STATUS_EVENTS:
            event_type, description = STATUS_EVENTS[new_status]
            location = order.delivery_address if new_status == OrderStatus.DELIVERED else None
            await OrderService._add_event(db, order, event_type, description, location)

        await db.commit()
        await db.refresh(order)

        logger.info("Order %s status %s -> %s", order.id, old_status.value, order.status.value)
        return order

    @staticmethod
    async def accept_order(db: AsyncSession, order_id: int, agent: str) -> Order:
        """
        Assign a delivery agent; this is what enables live tracking.

        The move to ACCEPTED goes through the transition table, so only
        PROCESSING orders can be accepted.
        """
        order = await OrderService.get_order(db, order_id)

        if order.assigned_agent is not None:
            raise OrderAlreadyAssignedError(order.id)

        if not is_valid_transition(order.status, OrderStatus.ACCEPTED):
            raise InvalidTransitionError(order.status.value, OrderStatus.ACCEPTED.value)

        order.assigned_agent = agent
        order.accepted_at = datetime.utcnow()
        order.status = OrderStatus.ACCEPTED

        await db.commit()
        await db.refresh(order)

        logger.info("Order %s accepted by agent %s", order.id, agent)
        return order

    @staticmethod
    async def agent_update_status(db: AsyncSession, order_id: int, agent: str, new_status: OrderStatus) -> Order:
        order = await OrderService.get_order(db, order_id)

        if order.assigned_agent != agent:
            raise AgentMismatchError()

        if new_status not in AGENT_STATUSES:
            raise InvalidTransitionError(order.status.value, OrderStatus(new_status).value)

        return await OrderService.update_status(db, order_id, new_status)

    @staticmethod
    async def latest_sample(db: AsyncSession, order_id: int) -> Optional[LocationSample]:
        result = await db.execute(
            select(LocationSample)
            .where(LocationSample.order_id == order_id)
            .order_by(LocationSample.recorded_at.desc(), LocationSample.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def record_location(db: AsyncSession, order_id: int, update: LocationUpdate) -> LocationSample:
        """
        Record one GPS sample from the assigned agent.

        Raises:
            TrackingNotEnabledError: No agent yet, or the order is terminal
            AgentMismatchError: Sample from an agent the order is not assigned to
            LocationOutOfOrderError: Timestamp older than the latest sample
        """
        order = await OrderService.get_order(db, order_id)

        if not order.tracking_enabled:
            raise TrackingNotEnabledError(order.id)

        if order.assigned_agent != update.agent:
            raise AgentMismatchError()

        if is_terminal(order.status):
            raise TrackingNotEnabledError(
                order.id, message=f"Order is {order.status.value}; location tracking has ended"
            )

        recorded_at = to_utc_naive(update.recorded_at or datetime.utcnow())
        latest = await OrderService.latest_sample(db, order.id)
        if latest is not None and recorded_at < to_utc_naive(latest.recorded_at):
            raise LocationOutOfOrderError(order.id)

        sample = LocationSample(
            order_id=order.id,
            agent=update.agent,
            latitude=update.lat,
            longitude=update.lng,
            heading=update.heading,
            accuracy_meters=update.accuracy_meters,
            speed_mps=update.speed_mps,
            address=update.address,
            recorded_at=recorded_at,
        )
        db.add(sample)
        await db.commit()
        await db.refresh(sample)
        return sample

    @staticmethod
    async def simulate_route(db: AsyncSession, order_id: int) -> List[LocationSample]:
        """
        Generate a test route of samples interpolated from pickup to delivery.

        Samples are spaced ``simulation_step_minutes`` apart, end at the
        time of the call and never precede an existing sample.
        """
        order = await OrderService.get_order(db, order_id)

        if not order.tracking_enabled:
            raise TrackingNotEnabledError(order.id, message="Order must be assigned to a delivery agent first")

        pickup = DEFAULT_SIMULATION_PICKUP
        if order.pickup_latitude is not None and order.pickup_longitude is not None:
            pickup = (order.pickup_latitude, order.pickup_longitude)
        delivery = DEFAULT_SIMULATION_DELIVERY
        if order.delivery_latitude is not None and order.delivery_longitude is not None:
            delivery = (order.delivery_latitude, order.delivery_longitude)

        points = settings.simulation_points
        step = timedelta(minutes=settings.simulation_step_minutes)
        base_time = datetime.utcnow() - step * points
        latest = await OrderService.latest_sample(db, order.id)
        if latest is not None and base_time <= to_utc_naive(latest.recorded_at):
            base_time = to_utc_naive(latest.recorded_at) + timedelta(seconds=1)

        coords = []
        for i in range(points + 1):
            progress = i / points
            lat = pickup[0] + (delivery[0] - pickup[0]) * progress
            lng = pickup[1] + (delivery[1] - pickup[1]) * progress
            # ~100m of GPS jitter
            lat += (random.random() - 0.5) * 0.001
            lng += (random.random() - 0.5) * 0.001
            coords.append((lat, lng))

        samples = []
        for i, (lat, lng) in enumerate(coords):
            nxt = coords[i + 1] if i + 1 < len(coords) else None
            heading = bearing_degrees(lat, lng, nxt[0], nxt[1]) if nxt else (samples[-1].heading if samples else 0.0)
            sample = LocationSample(
                order_id=order.id,
                agent=order.assigned_agent,
                latitude=lat,
                longitude=lng,
                heading=heading,
                accuracy_meters=10.0 + random.random() * 20.0,
                speed_mps=8.0 + random.random() * 12.0,
                address=f"Location {i + 1} on route" if nxt else "Near delivery location",
                recorded_at=base_time + step * i,
            )
            db.add(sample)
            samples.append(sample)

        await db.commit()
        logger.info("Simulated %d location samples for order %s", len(samples), order.id)
        return samples

    @staticmethod
    async def build_location_tracking(db: AsyncSession, order_id: int) -> LocationTrackingResponse:
        """
        Assemble the live location payload for an order.

        The newest sample is the current location; the remaining samples
        form the history, oldest first.
        """
        order = await OrderService.get_order(db, order_id)

        if not order.tracking_enabled:
            return LocationTrackingResponse(
                order_id=order.id,
                order_number=order.order_number,
                status=order.status,
                tracking_enabled=False,
                message="Order not yet accepted by a delivery agent",
            )

        result = await db.execute(
            select(LocationSample)
            .where(LocationSample.order_id == order.id)
            .order_by(LocationSample.recorded_at.asc(), LocationSample.id.asc())
        )
        samples = list(result.scalars().all())

        current = point_from_sample(samples[-1]) if samples else None
        history = [point_from_sample(s) for s in samples[:-1]]

        pickup = None
        if order.pickup_latitude is not None and order.pickup_longitude is not None:
            pickup = LocationPointResponse(
                lat=order.pickup_latitude, lng=order.pickup_longitude, address=order.pickup_address
            )
        delivery = None
        if order.delivery_latitude is not None and order.delivery_longitude is not None:
            delivery = LocationPointResponse(
                lat=order.delivery_latitude, lng=order.delivery_longitude, address=order.delivery_address
            )

        route = None
        if current and delivery:
            route = estimate_route(current.lat, current.lng, delivery.lat, delivery.lng)

        return LocationTrackingResponse(
            order_id=order.id,
            order_number=order.order_number,
            status=order.status,
            tracking_enabled=True,
            current_location=current,
            pickup_location=pickup,
            delivery_location=delivery,
            location_history=history,
            route=route,
        )

    @staticmethod
    async def build_tracking(db: AsyncSession, order_id: int) -> TrackingResponse:
        order = await OrderService.get_order(db, order_id)
        result = await db.execute(
            select(TrackingEvent).where(TrackingEvent.order_id == order.id).order_by(TrackingEvent.sequence)
        )
        events = result.scalars().all()

        return TrackingResponse(
            order_id=order.id,
            order_number=order.order_number,
            tracking_id=order.tracking_id or "",
            courier_name=order.courier_name or "",
            status=order.status,
            events=[TrackingEventResponse.model_validate(e) for e in events],
        )

    @staticmethod
    async def _add_event(
        db: AsyncSession,
        order: Order,
        event_type: TrackingEventType,
        description: str,
        location: Optional[str] = None,
    ) -> TrackingEvent:
        result = await db.execute(
            select(func.max(TrackingEvent.sequence)).where(TrackingEvent.order_id == order.id)
        )
        sequence = (result.scalar() or 0) + 1
        event = TrackingEvent(
            order_id=order.id,
            event_type=event_type,
            description=description,
            location=location,
            event_time=datetime.utcnow(),
            sequence=sequence,
        )
        db.add(event)
        return event
