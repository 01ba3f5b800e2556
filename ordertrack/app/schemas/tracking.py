"""
Tracking Pydantic schemas.

Timeline events, delivery-agent GPS samples and the live
location-tracking payload polled by the tracking consumer.
"""

from pydantic import Field
from datetime import datetime
from typing import Optional, List
from ordertrack.app.models.order_enums import OrderStatus, TrackingEventType
from ordertrack.app.schemas.order import CamelModel


class LocationPointResponse(CamelModel):
    lat: float
    lng: float
    heading: float = 0.0
    timestamp: Optional[datetime] = None
    address: Optional[str] = None


class RouteResponse(CamelModel):
    """Estimated route from the agent's position to the delivery address."""
    polyline: List[List[float]]
    distance_meters: int
    distance_text: str
    duration_seconds: int
    duration_text: str


class LocationTrackingResponse(CamelModel):
    """
    Live location payload.

    With ``tracking_enabled`` false every location field is empty.
    ``location_history`` is oldest first and excludes the current location.
    """
    order_id: int
    order_number: str
    status: OrderStatus
    tracking_enabled: bool
    message: Optional[str] = None
    current_location: Optional[LocationPointResponse] = None
    pickup_location: Optional[LocationPointResponse] = None
    delivery_location: Optional[LocationPointResponse] = None
    location_history: List[LocationPointResponse] = Field(default_factory=list)
    route: Optional[RouteResponse] = None


class TrackingEventResponse(CamelModel):
    event_type: TrackingEventType
    description: str
    location: Optional[str]
    event_time: datetime
    sequence: int


class TrackingResponse(CamelModel):
    """Order status plus the ordered lifecycle timeline."""
    order_id: int
    order_number: str
    tracking_id: str
    courier_name: str
    status: OrderStatus
    events: List[TrackingEventResponse]


class LocationUpdate(CamelModel):
    """Schema for a GPS sample reported by the delivery agent."""
    agent: str = Field(..., min_length=1, max_length=100)
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    heading: Optional[float] = Field(None, ge=0, lt=360)
    accuracy_meters: Optional[float] = Field(None, gt=0)
    speed_mps: Optional[float] = Field(None, ge=0)
    address: Optional[str] = Field(None, max_length=255)
    recorded_at: Optional[datetime] = Field(None, description="Defaults to the time of receipt")


class LocationUpdateResponse(CamelModel):
    order_id: int
    sample_id: int
    location: LocationPointResponse


class SimulationResponse(CamelModel):
    order_id: int
    generated: int
    current_location: LocationPointResponse
