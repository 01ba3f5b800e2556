"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from ordertrack.app.api.v1.endpoints import orders, delivery

router = APIRouter()

# Admin order lifecycle and customer tracking
router.include_router(orders.router)

# Delivery agent acceptance, status and GPS reporting
router.include_router(delivery.router)
