"""
Order Pydantic schemas.

Defines request and response models for order lifecycle management.
JSON field names are camelCase on the wire.
"""

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Optional
from ordertrack.app.models.order_enums import OrderStatus


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class Coordinates(CamelModel):
    """A fixed point such as the warehouse or the customer's address."""
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    address: Optional[str] = Field(None, max_length=500)


class OrderCreate(CamelModel):
    """Schema for creating a new order (stands in for checkout)."""
    order_number: Optional[str] = Field(None, min_length=1, max_length=50, description="Generated when omitted")
    courier_name: Optional[str] = Field(None, max_length=100)
    delivery_address: Optional[str] = Field(None, max_length=500)
    pickup: Optional[Coordinates] = None
    delivery: Optional[Coordinates] = None


class StatusUpdateRequest(CamelModel):
    """Schema for PATCH /orders/{id}/status."""
    status: OrderStatus
    cancellation_reason: Optional[str] = Field(None, max_length=500)


class AcceptOrderRequest(CamelModel):
    """Delivery agent accepting an order."""
    agent: str = Field(..., min_length=1, max_length=100)


class AgentStatusUpdate(CamelModel):
    """Delivery agent moving an accepted order forward."""
    agent: str = Field(..., min_length=1, max_length=100)
    status: OrderStatus


class OrderResponse(CamelModel):
    """Schema for order response."""
    id: int
    order_number: str
    status: OrderStatus
    cancellation_reason: Optional[str]
    tracking_id: Optional[str]
    courier_name: Optional[str]
    delivery_address: Optional[str]
    assigned_agent: Optional[str]
    accepted_at: Optional[datetime]
    picked_up_at: Optional[datetime]
    out_for_delivery_at: Optional[datetime]
    delivered_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime
