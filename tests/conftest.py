"""Test configuration and fixtures"""

import copy
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace
from typing import Dict, List
from uuid import UUID, uuid4

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from orderdesk.main import app
from orderdesk.database import Base, get_db
from orderdesk.api.deps import get_side_effects
from orderdesk.lifecycle.engine import SideEffect, StatusTransitionEngine
from orderdesk.lifecycle.roles import StaffSession, get_role_mode
from orderdesk.lifecycle.statuses import Fulfillment, OrderStatus, StaffRole
from orderdesk.models import Order, OrderItem, Restaurant, StaffUser
from orderdesk.schemas.events import OrderEventRecord
from orderdesk.schemas.order import OrderSnapshot
from orderdesk.schemas.staff import StaffRef
from orderdesk.stores.base import EventLog, OrderStore, StaffDirectory, UnitOfWork


# Test database URL (use in-memory SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

FIXED_NOW = datetime(2024, 3, 15, 16, 0, tzinfo=timezone.utc)


# In-memory stores for engine and projector tests

class MemoryOrderStore(OrderStore):
    
    def __init__(self):
        self.orders: Dict[UUID, OrderSnapshot] = {}
    
    async def get(self, order_id):
        return self.orders.get(order_id)
    
    async def query(self, restaurant_id, statuses, order_by="placed_at"):
        wanted = {OrderStatus(s) for s in statuses}
        found = [
            o for o in self.orders.values()
            if o.restaurant_id == restaurant_id and o.status in wanted
        ]
        return sorted(found, key=lambda o: o.placed_at, reverse=order_by.startswith("-"))
    
    async def query_placed_between(self, restaurant_id, start, end):
        found = [
            o for o in self.orders.values()
            if o.restaurant_id == restaurant_id and start <= o.placed_at < end
        ]
        return sorted(found, key=lambda o: o.placed_at, reverse=True)
    
    async def update(self, order_id, fields, expected_status):
        order = self.orders.get(order_id)
        if order is None or order.status != OrderStatus(expected_status):
            return False
        self.orders[order_id] = OrderSnapshot.model_validate({**order.model_dump(), **fields})
        return True


class MemoryEventLog(EventLog):
    
    def __init__(self, orders: MemoryOrderStore):
        self.orders = orders
        self.events: List[OrderEventRecord] = []
        self.fail_next = False
    
    async def append(self, order_id, actor_type, event_type, payload, timestamp, actor_id=None):
        if self.fail_next:
            self.fail_next = False
            raise RuntimeError("event log unavailable")
        event = OrderEventRecord(
            sequence=len(self.events) + 1,
            order_id=order_id,
            actor_type=actor_type,
            actor_id=actor_id,
            event_type=event_type,
            payload=payload,
            created_at=timestamp,
        )
        self.events.append(event)
        return event
    
    async def query(self, event_type, restaurant_id, order_id=None):
        found = [
            e for e in self.events
            if e.event_type == event_type
            and self.orders.orders[e.order_id].restaurant_id == restaurant_id
            and (order_id is None or e.order_id == order_id)
        ]
        return sorted(found, key=lambda e: (e.created_at, e.sequence), reverse=True)


class MemoryStaffDirectory(StaffDirectory):
    
    def __init__(self):
        self.staff: Dict[UUID, StaffRef] = {}
        self.names: Dict[UUID, str] = {}
    
    def add(self, role: StaffRole, name: str = None, is_active: bool = True) -> StaffRef:
        member = StaffRef(id=uuid4(), role=role, username=name, is_active=is_active)
        self.staff[member.id] = member
        if name:
            self.names[member.id] = name
        return member
    
    async def active_staff_by_role(self, restaurant_id, role):
        return [s for s in self.staff.values() if s.role == StaffRole(role) and s.is_active]
    
    async def staff_names(self, restaurant_id):
        return dict(self.names)


class MemoryUnitOfWork(UnitOfWork):
    """Restores the stores' contents on rollback"""
    
    def __init__(self, orders: MemoryOrderStore, events: MemoryEventLog):
        self.orders = orders
        self.events = events
        self.commits = 0
        self.rollbacks = 0
        self._saved = None
    
    async def __aenter__(self):
        self._saved = (copy.copy(self.orders.orders), list(self.events.events))
        return self
    
    async def commit(self):
        self.commits += 1
    
    async def rollback(self):
        self.rollbacks += 1
        self.orders.orders, self.events.events = self._saved


class MemoryBackend:
    """One restaurant's orders, events and staff held in memory"""
    
    def __init__(self):
        self.restaurant_id = uuid4()
        self.now = FIXED_NOW
        self.orders = MemoryOrderStore()
        self.events = MemoryEventLog(self.orders)
        self.staff = MemoryStaffDirectory()
        self.uow = MemoryUnitOfWork(self.orders, self.events)
        
        self.cook = self.staff.add(StaffRole.COOK, "Camille")
        self.cook2 = self.staff.add(StaffRole.COOK, "Dominique")
        self.driver = self.staff.add(StaffRole.DELIVERY, "Alex")
        self.driver2 = self.staff.add(StaffRole.DELIVERY, "Jordan")
        self.manager = self.staff.add(StaffRole.MANAGER, "Sam")
    
    def add_order(self, **fields) -> OrderSnapshot:
        values = {
            "id": uuid4(),
            "restaurant_id": self.restaurant_id,
            "order_number": len(self.orders.orders) + 100,
            "fulfillment": Fulfillment.DELIVERY,
            "status": OrderStatus.RECEIVED,
            "placed_at": FIXED_NOW - timedelta(minutes=5),
            "total": Decimal("10.00"),
        }
        values.update(fields)
        order = OrderSnapshot(**values)
        self.orders.orders[order.id] = order
        return order
    
    def session(self, actor: StaffRef, mode: str = "team") -> StaffSession:
        return StaffSession(actor, self.restaurant_id, get_role_mode(mode))
    
    def engine(self, side_effects=()) -> StatusTransitionEngine:
        return StatusTransitionEngine(
            self.uow,
            self.staff,
            side_effects=side_effects,
            clock=lambda: FIXED_NOW,
        )


class RecordingSideEffect(SideEffect):
    
    name = "recording"
    
    def __init__(self):
        self.calls = []
    
    async def status_changed(self, order, event):
        self.calls.append((order.id, order.status, event.sequence))


@pytest.fixture
def backend():
    """In-memory stores with a cook, two drivers and a manager"""
    return MemoryBackend()


@pytest.fixture
def recorder():
    return RecordingSideEffect()


# Database-backed fixtures for API tests

@pytest.fixture
async def test_db():
    """Create test database"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    
    async with session_factory() as session:
        yield session
    
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    
    await engine.dispose()


@pytest.fixture
async def seeded(test_db):
    """Create a restaurant with staff; returns plain ids"""
    restaurant = Restaurant(
        id=uuid4(),
        name="Test Restaurant",
        timezone="America/Toronto",
        kitchen_mode="team",
        delivery_mode="team",
    )
    test_db.add(restaurant)
    await test_db.flush()
    
    ids = {"restaurant_id": restaurant.id}
    for key, role, name, active in [
        ("cook_id", "cook", "Camille", True),
        ("driver_id", "delivery", "Alex", True),
        ("manager_id", "manager", "Sam", True),
        ("inactive_id", "cook", "Former", False),
    ]:
        member = StaffUser(
            id=uuid4(),
            restaurant_id=restaurant.id,
            username=name.lower(),
            display_name=name,
            role=role,
            is_active=active,
        )
        test_db.add(member)
        ids[key] = member.id
    
    await test_db.commit()
    return SimpleNamespace(**ids)


@pytest.fixture
def make_order(test_db, seeded):
    """Factory inserting an order; returns its id"""
    async def _make(
        status="received",
        fulfillment="delivery",
        placed_at=None,
        total=Decimal("10.00"),
        items=(("Burger", 1, Decimal("10.00")),),
        **fields,
    ) -> UUID:
        order = Order(
            id=uuid4(),
            restaurant_id=seeded.restaurant_id,
            order_number=fields.pop("order_number", None),
            fulfillment=fulfillment,
            status=status,
            placed_at=placed_at or datetime.now(timezone.utc) - timedelta(minutes=2),
            subtotal=total,
            total=total,
            payment_method="card",
            payment_status="paid",
            **fields,
        )
        test_db.add(order)
        for position, (name, quantity, price) in enumerate(items):
            test_db.add(
                OrderItem(
                    order_id=order.id,
                    position=position,
                    name=name,
                    quantity=quantity,
                    unit_price=price,
                    total_price=price * quantity,
                    modifiers=[],
                )
            )
        await test_db.commit()
        return order.id
    
    return _make


@pytest.fixture
async def client(test_db, recorder):
    """Create test client with overridden database and side effects"""
    async def override_get_db():
        yield test_db
    
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_side_effects] = lambda: [recorder]
    
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    
    app.dependency_overrides.clear()


@pytest.fixture
def as_staff():
    """Headers identifying a staff member"""
    def _headers(staff_id: UUID) -> dict:
        return {"X-Staff-Id": str(staff_id)}
    return _headers
