"""
Database seeding script for demo orders.

Creates one order in each interesting lifecycle position so the admin
transition UI and the tracking widget have something to show.
Run this script after the database is set up.
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from ordertrack.app.db.session import AsyncSessionLocal, engine, Base
from ordertrack.app.domain.orders.order_service import OrderService
from ordertrack.app.models.order import Order
from ordertrack.app.models.order_enums import OrderStatus
from ordertrack.app.schemas.order import Coordinates, OrderCreate
from sqlalchemy import select

WAREHOUSE = Coordinates(lat=12.9716, lng=77.5946, address="MG Road Warehouse, Bangalore")
CUSTOMER = Coordinates(lat=12.9352, lng=77.6245, address="Koramangala 5th Block, Bangalore")

DEMO_AGENT = "agent-ravi"


async def seed_orders():
    """
    Seed demo orders.

    Creates:
    - ORD-DEMO-PENDING: fresh order, only CONFIRMED/CANCELLED offered
    - ORD-DEMO-PROCESSING: ready for a delivery agent to accept
    - ORD-DEMO-LIVE: accepted and picked up, with a simulated GPS trail
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting order seeding...")

        result = await db.execute(select(Order).where(Order.order_number == "ORD-DEMO-PENDING"))
        if result.scalar_one_or_none():
            print("ℹ️  Demo orders already exist, skipping seeding")
            return

        pending = await OrderService.create_order(
            db, OrderCreate(order_number="ORD-DEMO-PENDING", courier_name="Express Courier",
                            pickup=WAREHOUSE, delivery=CUSTOMER)
        )
        print(f"✅ Created {pending.order_number} (id={pending.id})")

        processing = await OrderService.create_order(
            db, OrderCreate(order_number="ORD-DEMO-PROCESSING", courier_name="Express Courier",
                            pickup=WAREHOUSE, delivery=CUSTOMER)
        )
        for status in (OrderStatus.CONFIRMED, OrderStatus.PROCESSING):
            await OrderService.update_status(db, processing.id, status)
        print(f"✅ Created {processing.order_number} (id={processing.id})")

        live = await OrderService.create_order(
            db, OrderCreate(order_number="ORD-DEMO-LIVE", courier_name="Express Courier",
                            pickup=WAREHOUSE, delivery=CUSTOMER)
        )
        for status in (OrderStatus.CONFIRMED, OrderStatus.PROCESSING):
            await OrderService.update_status(db, live.id, status)
        await OrderService.accept_order(db, live.id, DEMO_AGENT)
        await OrderService.update_status(db, live.id, OrderStatus.PICKED_UP)
        samples = await OrderService.simulate_route(db, live.id)
        print(f"✅ Created {live.order_number} (id={live.id}) with {len(samples)} location samples")

        print("\n🎉 Order seeding completed successfully!")
        print(f"\nTrack the live order with: python scripts/track_order.py {live.id}")


if __name__ == "__main__":
    asyncio.run(seed_orders())
