"""
Tracking Event database model.

Discrete lifecycle milestones shown on the order tracking timeline.
"""

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Enum
from ordertrack.app.db.session import Base
from ordertrack.app.models.order_enums import TrackingEventType


class TrackingEvent(Base):
    __tablename__ = "tracking_events"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey('orders.id'), nullable=False, index=True)

    event_type = Column(Enum(TrackingEventType), nullable=False)
    description = Column(String(255), nullable=False)
    location = Column(String(255), nullable=True)
    event_time = Column(DateTime(timezone=True), nullable=False)
    sequence = Column(Integer, nullable=False)  # Position in the timeline

    def __repr__(self):
        return f"<TrackingEvent(order_id={self.order_id}, type='{self.event_type.value}', seq={self.sequence})>"
