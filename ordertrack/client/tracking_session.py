"""
Tracking session model.

The in-memory aggregate rebuilt from every successful location-tracking
poll. Each poll replaces the session wholesale; nothing is merged field by
field.
"""

import math
from datetime import datetime, timezone
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from ordertrack.app.models.order_enums import OrderStatus


class LocationPoint(BaseModel):
    """A GPS position. ``heading`` is degrees clockwise from north."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        frozen = True
        extra = "ignore"

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    heading: float = 0.0
    timestamp: Optional[datetime] = None
    address: Optional[str] = None

    @field_validator("lat", "lng")
    @classmethod
    def must_be_finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("coordinate must be finite")
        return value

    @field_validator("heading", mode="before")
    @classmethod
    def default_heading(cls, value: Any) -> Any:
        return 0.0 if value is None else value

    @field_validator("timestamp")
    @classmethod
    def to_utc_naive(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Naive stamps are UTC already, as the service stores them
        if value is not None and value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    @property
    def latlng(self) -> Tuple[float, float]:
        return (self.lat, self.lng)


class RouteMetadata(BaseModel):
    """Route supplied by the service. Only rendered, never computed here."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        extra = "allow"

    polyline: Optional[List[List[float]]] = None
    path: Optional[List[List[float]]] = None
    distance_text: Optional[str] = None
    duration_text: Optional[str] = None

    @field_validator("polyline", "path")
    @classmethod
    def must_be_lat_lng_pairs(cls, value: Optional[List[List[float]]]) -> Optional[List[List[float]]]:
        for pair in value or []:
            if len(pair) != 2 or not all(math.isfinite(c) for c in pair):
                raise ValueError("route points must be finite [lat, lng] pairs")
        return value

    @property
    def points(self) -> List[Tuple[float, float]]:
        """Route geometry as (lat, lng) tuples, ``polyline`` preferred."""
        return [(p[0], p[1]) for p in (self.polyline or self.path or [])]


class TrackingSessionModel(BaseModel):
    """
    Ephemeral tracking state for one order.

    With ``tracking_enabled`` false every location field is cleared on
    construction, whatever the payload carried, so nothing downstream can
    render it.
    """

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        extra = "ignore"

    order_id: Optional[int] = None
    status: Optional[OrderStatus] = None
    tracking_enabled: bool = False
    message: Optional[str] = None
    pickup_location: Optional[LocationPoint] = None
    delivery_location: Optional[LocationPoint] = None
    current_location: Optional[LocationPoint] = None
    location_history: List[LocationPoint] = Field(default_factory=list)
    route: Optional[RouteMetadata] = None

    @field_validator("location_history", mode="before")
    @classmethod
    def none_is_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @model_validator(mode="after")
    def normalize(self) -> "TrackingSessionModel":
        if not self.tracking_enabled:
            self.pickup_location = None
            self.delivery_location = None
            self.current_location = None
            self.location_history = []
            self.route = None
            return self

        history = self.location_history
        if history and all(p.timestamp is not None for p in history):
            # Stable: equal timestamps keep service order
            self.location_history = sorted(history, key=lambda p: p.timestamp)
        return self

    @classmethod
    def from_payload(cls, payload: dict) -> "TrackingSessionModel":
        """Build a session from a ``/location-tracking`` response body."""
        return cls.model_validate(payload)

    def has_any_location(self) -> bool:
        return bool(self.anchor_points() or self.location_history)

    def is_ready(self) -> bool:
        return self.tracking_enabled

    def anchor_points(self) -> List[LocationPoint]:
        """Pickup, delivery and current, whichever are known."""
        return [p for p in (self.pickup_location, self.delivery_location, self.current_location) if p is not None]

    @property
    def route_summary(self) -> Optional[str]:
        if self.route is None or not (self.route.distance_text or self.route.duration_text):
            return None
        parts = [p for p in (self.route.distance_text, self.route.duration_text) if p]
        return ", ".join(parts)
