"""
Order database model.

Orders move through the lifecycle state machine and, once a delivery
agent accepts them, carry the fixed pickup and delivery coordinates used
by live tracking.
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, Enum
from sqlalchemy.sql import func
from ordertrack.app.db.session import Base
from ordertrack.app.models.order_enums import OrderStatus


class Order(Base):
    """
    Order model.

    Never deleted: CANCELLED and DELIVERED freeze the row.
    """
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Identification
    order_number = Column(String(50), unique=True, nullable=False, index=True)
    tracking_id = Column(String(50), unique=True, nullable=True, index=True)
    courier_name = Column(String(100), nullable=True)

    # Lifecycle
    status = Column(Enum(OrderStatus), default=OrderStatus.PENDING, nullable=False, index=True)
    cancellation_reason = Column(String(500), nullable=True)  # Set once, on CANCELLED

    # Delivery agent (set on acceptance; enables tracking)
    assigned_agent = Column(String(100), nullable=True, index=True)
    accepted_at = Column(DateTime(timezone=True), nullable=True)
    picked_up_at = Column(DateTime(timezone=True), nullable=True)
    out_for_delivery_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)

    # Fixed endpoints of the delivery
    delivery_address = Column(String(500), nullable=True)
    pickup_latitude = Column(Float, nullable=True)
    pickup_longitude = Column(Float, nullable=True)
    pickup_address = Column(String(500), nullable=True)
    delivery_latitude = Column(Float, nullable=True)
    delivery_longitude = Column(Float, nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    @property
    def tracking_enabled(self) -> bool:
        return self.assigned_agent is not None and self.accepted_at is not None

    def __repr__(self):
        return f"<Order(id={self.id}, number='{self.order_number}', status='{self.status.value}')>"
