#!/usr/bin/env python3
"""
Seed script to create a demo restaurant, staff and a few live orders
"""

import asyncio
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal


DEMO_ITEMS = [
    ("Poutine classique", Decimal("11.50")),
    ("Burger maison", Decimal("15.75")),
    ("Salade César", Decimal("9.25")),
    ("Frites", Decimal("4.50")),
]


async def seed_demo_data():
    """Seed demo data for development"""
    from orderdesk.database import SessionLocal, engine, Base
    from orderdesk.models import Order, OrderEvent, OrderItem, Restaurant, StaffUser
    from sqlalchemy import select
    
    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    
    async with SessionLocal() as db:
        # Check if demo restaurant already exists
        result = await db.execute(
            select(Restaurant).where(Restaurant.name == "Chez Madak")
        )
        existing = result.scalar_one_or_none()
        
        if existing:
            print("Demo data already exists. Skipping...")
            return
        
        print("Creating demo restaurant...")
        
        restaurant = Restaurant(
            id=uuid.uuid4(),
            name="Chez Madak",
            timezone="America/Toronto",
            kitchen_mode="team",
            delivery_mode="individual",
        )
        db.add(restaurant)
        await db.flush()
        
        staff = {
            role: StaffUser(
                id=uuid.uuid4(),
                restaurant_id=restaurant.id,
                username=username,
                display_name=name,
                role=role,
            )
            for role, username, name in [
                ("cook", "cuisine1", "Camille"),
                ("delivery", "livreur1", "Alex"),
                ("manager", "gerant", "Sam"),
            ]
        }
        for member in staff.values():
            db.add(member)
        await db.flush()
        
        now = datetime.now(timezone.utc)
        plan = [
            ("received", "delivery", 5, None),
            ("received", "pickup", 12, None),
            ("preparing", "delivery", 20, "cook"),
            ("ready", "delivery", 30, "cook"),
            ("enroute", "delivery", 45, "delivery"),
            ("completed", "pickup", 90, "cook"),
        ]
        
        for number, (status, fulfillment, minutes_ago, bound) in enumerate(plan, start=101):
            name, price = DEMO_ITEMS[number % len(DEMO_ITEMS)]
            fee = Decimal("4.00") if fulfillment == "delivery" else Decimal("0")
            taxes = (price * Decimal("0.15")).quantize(Decimal("0.01"))
            tip = Decimal("2.00")
            
            order = Order(
                id=uuid.uuid4(),
                restaurant_id=restaurant.id,
                order_number=number,
                fulfillment=fulfillment,
                status=status,
                customer_name="Client démo",
                placed_at=now - timedelta(minutes=minutes_ago),
                cook_id=staff["cook"].id if bound else None,
                driver_id=staff["delivery"].id if bound == "delivery" else None,
                payment_method="card",
                payment_status="paid",
                subtotal=price,
                delivery_fee=fee,
                taxes=taxes,
                tip_amount=tip,
                total=price + fee + taxes + tip,
            )
            db.add(order)
            db.add(OrderItem(order_id=order.id, name=name, quantity=1, unit_price=price, total_price=price))
            db.add(
                OrderEvent(
                    order_id=order.id,
                    restaurant_id=restaurant.id,
                    actor_type="system",
                    payload={"status": status},
                    created_at=now - timedelta(minutes=max(minutes_ago - 5, 0)),
                )
            )
        
        await db.commit()
        
        print(f"""
Demo data created successfully!

Restaurant: {restaurant.name}
  ID: {restaurant.id}
  Timezone: {restaurant.timezone}

Staff (send as X-Staff-Id):
  Cook:     {staff["cook"].id}
  Driver:   {staff["delivery"].id}
  Manager:  {staff["manager"].id}

Orders: {len(plan)} created
""")


if __name__ == "__main__":
    asyncio.run(seed_demo_data())
