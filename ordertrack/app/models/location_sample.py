"""
Location Sample database model.

Stores the delivery agent's GPS breadcrumb trail for live order tracking.
"""

from sqlalchemy import Column, Integer, Float, String, ForeignKey, DateTime
from sqlalchemy.sql import func
from ordertrack.app.db.session import Base


class LocationSample(Base):
    """
    Location Sample model.

    Records GPS coordinates reported by the agent after acceptance.
    The newest sample is the order's current location.
    """
    __tablename__ = "location_samples"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # References
    order_id = Column(Integer, ForeignKey('orders.id'), nullable=False, index=True)
    agent = Column(String(100), nullable=False)

    # GPS coordinates
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    heading = Column(Float, nullable=True)  # Degrees clockwise from north
    accuracy_meters = Column(Float, nullable=True)
    speed_mps = Column(Float, nullable=True)
    address = Column(String(255), nullable=True)

    # Timing
    recorded_at = Column(DateTime(timezone=True), nullable=False)  # When GPS was recorded
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)  # When inserted to DB

    def __repr__(self):
        return f"<LocationSample(order_id={self.order_id}, lat={self.latitude}, lng={self.longitude})>"
