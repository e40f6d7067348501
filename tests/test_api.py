"""Integration tests for the HTTP API"""

import asyncio
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from httpx import AsyncClient

from orderdesk.api import analytics as analytics_api
from orderdesk.config import settings
from orderdesk.lifecycle.statuses import OrderStatus
from orderdesk.models.restaurant import StaffUser
from orderdesk.schemas.analytics import AnalyticsReport
from orderdesk.stores.sql import SqlOrderStore


def transition_url(seeded, order_id):
    return f"/restaurants/{seeded.restaurant_id}/orders/{order_id}/transitions"


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")
    
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_cook_starts_preparing(client: AsyncClient, seeded, make_order, as_staff, recorder, test_db):
    """A cook moves a received order to preparing and claims it"""
    order_id = await make_order()
    
    response = await client.post(
        transition_url(seeded, order_id),
        json={"target_status": "preparing", "expected_status": "received"},
        headers=as_staff(seeded.cook_id),
    )
    
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "preparing"
    assert data["cook_id"] == str(seeded.cook_id)
    
    stored = await SqlOrderStore(test_db).get(order_id)
    assert stored.status == OrderStatus.PREPARING
    assert stored.cook_id == seeded.cook_id
    assert [(call[0], call[1]) for call in recorder.calls] == [(order_id, OrderStatus.PREPARING)]


@pytest.mark.asyncio
async def test_stale_expected_status_conflicts(client: AsyncClient, seeded, make_order, as_staff, test_db):
    """Acting on an outdated board returns 409 and changes nothing"""
    order_id = await make_order(status="preparing", cook_id=seeded.cook_id)
    
    response = await client.post(
        transition_url(seeded, order_id),
        json={"target_status": "preparing", "expected_status": "received"},
        headers=as_staff(seeded.cook_id),
    )
    
    assert response.status_code == 409
    assert response.json()["error"] == "ConflictError"
    assert (await SqlOrderStore(test_db).get(order_id)).status == OrderStatus.PREPARING


@pytest.mark.asyncio
async def test_illegal_transition_is_rejected(client: AsyncClient, seeded, make_order, as_staff):
    order_id = await make_order()
    
    response = await client.post(
        transition_url(seeded, order_id),
        json={"target_status": "completed", "expected_status": "received"},
        headers=as_staff(seeded.manager_id),
    )
    
    assert response.status_code == 422
    assert response.json()["error"] == "InvalidTransition"


@pytest.mark.asyncio
async def test_cancel_without_reason(client: AsyncClient, seeded, make_order, as_staff):
    order_id = await make_order()
    
    response = await client.post(
        transition_url(seeded, order_id),
        json={"target_status": "cancelled", "expected_status": "received", "reason": " "},
        headers=as_staff(seeded.manager_id),
    )
    
    assert response.status_code == 422
    assert response.json()["error"] == "MissingReason"


@pytest.mark.asyncio
async def test_driver_cannot_start_cooking(client: AsyncClient, seeded, make_order, as_staff):
    order_id = await make_order()
    
    response = await client.post(
        transition_url(seeded, order_id),
        json={"target_status": "preparing", "expected_status": "received"},
        headers=as_staff(seeded.driver_id),
    )
    
    assert response.status_code == 403
    assert response.json()["error"] == "TransitionForbidden"


@pytest.mark.asyncio
async def test_unknown_or_inactive_staff_denied(client: AsyncClient, seeded, make_order, as_staff):
    order_id = await make_order()
    body = {"target_status": "preparing", "expected_status": "received"}
    
    for staff_id in (uuid4(), seeded.inactive_id):
        response = await client.post(transition_url(seeded, order_id), json=body, headers=as_staff(staff_id))
        assert response.status_code == 403


@pytest.mark.asyncio
async def test_missing_order(client: AsyncClient, seeded, as_staff):
    response = await client.post(
        transition_url(seeded, uuid4()),
        json={"target_status": "preparing", "expected_status": "received"},
        headers=as_staff(seeded.cook_id),
    )
    
    assert response.status_code == 404
    assert response.json()["error"] == "OrderNotFound"


@pytest.mark.asyncio
async def test_full_delivery_flow_and_timeline(client: AsyncClient, seeded, make_order, as_staff):
    """Walk an order through the delivery path and read its audit trail"""
    order_id = await make_order(order_number=501)
    steps = [
        (seeded.cook_id, "received", "preparing", {}),
        (seeded.cook_id, "preparing", "ready", {}),
        (seeded.driver_id, "ready", "assigned", {}),
        (seeded.driver_id, "assigned", "enroute", {}),
        (seeded.driver_id, "enroute", "completed", {}),
    ]
    
    for staff_id, current, target, extra in steps:
        response = await client.post(
            transition_url(seeded, order_id),
            json={"target_status": target, "expected_status": current, **extra},
            headers=as_staff(staff_id),
        )
        assert response.status_code == 200, response.json()
    
    data = response.json()
    assert data["driver_id"] == str(seeded.driver_id)
    assert data["completed_at"] is not None
    
    response = await client.get(
        f"/restaurants/{seeded.restaurant_id}/orders/{order_id}/timeline",
        headers=as_staff(seeded.manager_id),
    )
    
    assert response.status_code == 200
    trail = response.json()
    assert [e["status"] for e in trail] == ["preparing", "ready", "assigned", "enroute", "completed"]
    assert trail[2]["payload"]["driver_id"] == str(seeded.driver_id)
    assert [e["sequence"] for e in trail] == sorted(e["sequence"] for e in trail)


@pytest.mark.asyncio
async def test_kitchen_board_sections_and_flags(client: AsyncClient, seeded, make_order, as_staff):
    old = await make_order(placed_at=datetime.now(timezone.utc) - timedelta(minutes=40))
    fresh = await make_order()
    cooking = await make_order(status="preparing", cook_id=seeded.cook_id)
    await make_order(status="enroute", driver_id=seeded.driver_id)
    
    response = await client.get(
        f"/restaurants/{seeded.restaurant_id}/boards/kitchen",
        headers=as_staff(seeded.cook_id),
        params={"known": [str(old), str(cooking)]},
    )
    
    assert response.status_code == 200
    data = response.json()
    received = data["sections"]["received"]
    assert [o["order"]["id"] for o in received] == [str(old), str(fresh)]
    assert [f["label"] for f in received[0]["flags"]] == ["Retard"]
    assert received[1]["flags"] == []
    assert [o["order"]["id"] for o in data["sections"]["preparing"]] == [str(cooking)]
    assert data["sections"]["ready"] == []
    assert data["new_order_ids"] == [str(fresh)]
    assert data["poll_interval_seconds"] == settings.kitchen_poll_seconds


@pytest.mark.asyncio
async def test_delivery_board_skips_pickup_orders(client: AsyncClient, seeded, make_order, as_staff):
    delivery = await make_order(status="ready")
    await make_order(status="ready", fulfillment="pickup")
    active = await make_order(status="assigned", driver_id=seeded.driver_id)
    
    response = await client.get(
        f"/restaurants/{seeded.restaurant_id}/boards/delivery",
        headers=as_staff(seeded.driver_id),
    )
    
    assert response.status_code == 200
    sections = response.json()["sections"]
    assert [o["order"]["id"] for o in sections["available"]] == [str(delivery)]
    assert [o["order"]["id"] for o in sections["active"]] == [str(active)]


@pytest.mark.asyncio
async def test_manager_board_is_manager_only(client: AsyncClient, seeded, make_order, as_staff):
    await make_order(status="cancelled", cancellation_reason="duplicate")
    await make_order(status="completed")
    
    denied = await client.get(
        f"/restaurants/{seeded.restaurant_id}/boards/manager",
        headers=as_staff(seeded.cook_id),
    )
    response = await client.get(
        f"/restaurants/{seeded.restaurant_id}/boards/manager",
        headers=as_staff(seeded.manager_id),
        params={"period": "all"},
    )
    
    assert denied.status_code == 403
    assert response.status_code == 200
    sections = response.json()["sections"]
    assert list(sections) == [
        "received", "preparing", "ready", "assigned", "enroute", "completed", "cancelled_failed",
    ]
    assert len(sections["cancelled_failed"]) == 1
    assert len(sections["completed"]) == 1


@pytest.mark.asyncio
async def test_kitchen_history_after_cancel(client: AsyncClient, seeded, make_order, as_staff):
    """History is rebuilt from the events written by transitions"""
    order_id = await make_order(order_number=777)
    
    for current, target, extra in [
        ("received", "preparing", {}),
        ("preparing", "cancelled", {"reason": "out of buns"}),
    ]:
        response = await client.post(
            transition_url(seeded, order_id),
            json={"target_status": target, "expected_status": current, **extra},
            headers=as_staff(seeded.cook_id),
        )
        assert response.status_code == 200
    
    response = await client.get(
        f"/restaurants/{seeded.restaurant_id}/history",
        headers=as_staff(seeded.cook_id),
        params={"board": "kitchen", "period": "today"},
    )
    
    assert response.status_code == 200
    items = response.json()["items"]
    assert len(items) == 1
    assert items[0]["order_id"] == str(order_id)
    assert items[0]["status"] == "cancelled"
    assert items[0]["reason"] == "out of buns"


@pytest.mark.asyncio
async def test_history_rejects_unknown_period(client: AsyncClient, seeded, as_staff):
    response = await client.get(
        f"/restaurants/{seeded.restaurant_id}/history",
        headers=as_staff(seeded.cook_id),
        params={"period": "forever"},
    )
    
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_analytics_for_managers(client: AsyncClient, seeded, make_order, as_staff):
    await make_order(status="completed", total=Decimal("10.00"))
    await make_order(status="completed", total=Decimal("20.00"))
    await make_order(status="cancelled", total=Decimal("15.00"), cancellation_reason="duplicate")
    
    response = await client.get(
        f"/restaurants/{seeded.restaurant_id}/analytics",
        headers=as_staff(seeded.manager_id),
        params={"range": "week"},
    )
    
    assert response.status_code == 200
    data = response.json()
    assert data["total_orders"] == 3
    assert data["revenue"]["total"] == 45.0
    assert data["cancelled_failed"]["cancellation_rate"] == 33.33
    assert data["top_items"][0]["name"] == "Burger"
    assert data["top_items"][0]["quantity"] == 3


@pytest.mark.asyncio
async def test_analytics_denied_to_staff(client: AsyncClient, seeded, as_staff):
    response = await client.get(
        f"/restaurants/{seeded.restaurant_id}/analytics",
        headers=as_staff(seeded.cook_id),
    )
    
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_analytics_invalid_custom_range(client: AsyncClient, seeded, as_staff):
    response = await client.get(
        f"/restaurants/{seeded.restaurant_id}/analytics",
        headers=as_staff(seeded.manager_id),
        params={"range": "custom", "start": "2024-03-10", "end": "2024-03-01"},
    )
    
    assert response.status_code == 422
    assert response.json()["error"] == "InvalidDateRange"


@pytest.mark.asyncio
async def test_cooks_pick_their_own_role_mode(client: AsyncClient, seeded, make_order, test_db):
    """A chef and an individual cook share one restaurant, each in their own mode"""
    second_cook = StaffUser(
        id=uuid4(),
        restaurant_id=seeded.restaurant_id,
        username="lou",
        display_name="Lou",
        role="cook",
        is_active=True,
    )
    test_db.add(second_cook)
    await test_db.commit()
    second_cook_id = second_cook.id
    
    chef = {"X-Staff-Id": str(seeded.cook_id), "X-Role-Mode": "chef"}
    individual = {"X-Staff-Id": str(second_cook_id), "X-Role-Mode": "individual"}
    board_url = f"/restaurants/{seeded.restaurant_id}/boards/kitchen"
    
    waiting = await make_order()
    taken = await make_order(status="preparing", cook_id=seeded.cook_id)
    
    board = (await client.get(board_url, headers=individual)).json()
    assert [o["order"]["id"] for o in board["sections"]["received"]] == [str(waiting)]
    assert board["sections"]["preparing"] == []
    
    board = (await client.get(board_url, headers=chef)).json()
    assert [o["order"]["id"] for o in board["sections"]["preparing"]] == [str(taken)]
    
    response = await client.post(
        transition_url(seeded, waiting),
        json={"target_status": "preparing", "expected_status": "received", "cook_id": str(second_cook_id)},
        headers=chef,
    )
    assert response.status_code == 200
    assert response.json()["cook_id"] == str(second_cook_id)
    
    board = (await client.get(board_url, headers=individual)).json()
    assert [o["order"]["id"] for o in board["sections"]["preparing"]] == [str(waiting)]
    
    other = await make_order()
    response = await client.post(
        transition_url(seeded, other),
        json={"target_status": "preparing", "expected_status": "received", "cook_id": str(seeded.cook_id)},
        headers=individual,
    )
    assert response.status_code == 403
    assert response.json()["error"] == "TransitionForbidden"


@pytest.mark.asyncio
async def test_role_mode_must_suit_the_role(client: AsyncClient, seeded, as_staff):
    response = await client.get(
        f"/restaurants/{seeded.restaurant_id}/boards/kitchen",
        headers={**as_staff(seeded.cook_id), "X-Role-Mode": "coordinator"},
    )
    
    assert response.status_code == 422
    assert response.json()["error"] == "ValidationError"


@pytest.mark.asyncio
async def test_newer_analytics_request_supersedes_older(client: AsyncClient, seeded, as_staff, monkeypatch):
    """Switching ranges while a report is loading discards the older report"""
    started = asyncio.Event()
    release = asyncio.Event()
    windows = []
    
    async def slow_then_fast(orders, staff, restaurant_id, zone, window, aggregator):
        windows.append(window)
        if len(windows) == 1:
            started.set()
            await release.wait()
        return AnalyticsReport(window_start=window.start, window_end=window.end, total_orders=len(windows))
    
    monkeypatch.setattr(analytics_api, "build_report", slow_then_fast)
    url = f"/restaurants/{seeded.restaurant_id}/analytics"
    headers = as_staff(seeded.manager_id)
    
    older = asyncio.create_task(client.get(url, headers=headers, params={"range": "year"}))
    await asyncio.wait_for(started.wait(), timeout=5)
    newer = await client.get(url, headers=headers, params={"range": "week"})
    release.set()
    older = await asyncio.wait_for(older, timeout=5)
    
    assert newer.status_code == 200
    assert newer.json()["superseded"] is False
    assert newer.json()["total_orders"] == 2
    
    assert older.status_code == 200
    assert older.json()["superseded"] is True
    assert older.json()["total_orders"] == 0
    assert older.json()["window_start"] == windows[0].start.isoformat()
