"""
Order-related enumerations.
"""

import enum


class OrderStatus(str, enum.Enum):
    """
    Order status enumeration.

    Status flow:
        PENDING → CONFIRMED → PROCESSING → SHIPPED → OUT_FOR_DELIVERY → DELIVERED
        PROCESSING → ACCEPTED → PICKED_UP → OUT_FOR_DELIVERY (delivery agent path)
        Any non-terminal status except OUT_FOR_DELIVERY can transition to CANCELLED
    """
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    ACCEPTED = "ACCEPTED"  # Delivery agent assigned
    PICKED_UP = "PICKED_UP"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class TrackingEventType(str, enum.Enum):
    """Discrete lifecycle events shown on the tracking timeline."""
    LABEL_CREATED = "LABEL_CREATED"
    SHIPMENT_PICKED = "SHIPMENT_PICKED"
    PACKAGE_RECEIVED_AT_FACILITY = "PACKAGE_RECEIVED_AT_FACILITY"
    PACKAGE_LEFT_FACILITY = "PACKAGE_LEFT_FACILITY"
    PACKAGE_ARRIVED_AT_LOCAL_FACILITY = "PACKAGE_ARRIVED_AT_LOCAL_FACILITY"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    DELIVERED = "DELIVERED"
