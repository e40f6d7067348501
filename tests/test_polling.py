"""Tests for board polling and superseded requests"""

import asyncio
from uuid import uuid4

import pytest

from orderdesk.boards.polling import BoardPoller, SupersedingRunner, new_order_ids, poll_interval
from orderdesk.config import settings


def test_first_poll_reports_nothing():
    assert new_order_ids(None, [uuid4(), uuid4()]) == []


def test_new_ids_keep_current_order():
    a, b, c, d = uuid4(), uuid4(), uuid4(), uuid4()
    
    assert new_order_ids([a, b], [d, a, c, b]) == [d, c]
    assert new_order_ids([a, b], [a]) == []
    assert new_order_ids([], [a]) == [a]


class ScriptedFetch:
    """Returns a scripted sequence of boards, repeating the last one"""
    
    def __init__(self, boards):
        self.boards = boards
        self.calls = 0
    
    async def __call__(self):
        board = self.boards[min(self.calls, len(self.boards) - 1)]
        self.calls += 1
        if isinstance(board, Exception):
            raise board
        return board


@pytest.mark.asyncio
async def test_poller_reports_arrivals(backend):
    first, second = backend.add_order(), backend.add_order()
    seen = []
    
    async def on_new(ids):
        seen.append(ids)
    
    poller = BoardPoller(ScriptedFetch([[first], [first, second], [second]]), 10, on_new)
    
    assert await poller.poll_once() == []
    assert await poller.poll_once() == [second.id]
    assert await poller.poll_once() == []
    assert seen == [[second.id]]
    assert poller.orders == [second]


@pytest.mark.asyncio
async def test_callback_failure_does_not_stop_polling(backend):
    first, second = backend.add_order(), backend.add_order()
    
    async def on_new(ids):
        raise RuntimeError("speaker unplugged")
    
    poller = BoardPoller(ScriptedFetch([[first], [first, second]]), 10, on_new)
    
    await poller.poll_once()
    assert await poller.poll_once() == [second.id]


@pytest.mark.asyncio
async def test_run_keeps_polling_after_fetch_errors(backend):
    order = backend.add_order()
    fetch = ScriptedFetch([[order], RuntimeError("network down"), [order]])
    poller = BoardPoller(fetch, 0.001)
    shutdown = asyncio.Event()
    
    async def stop_after_three_polls():
        while fetch.calls < 3:
            await asyncio.sleep(0.001)
        shutdown.set()
    
    await asyncio.wait_for(
        asyncio.gather(poller.run(shutdown), stop_after_three_polls()),
        timeout=5,
    )
    
    assert fetch.calls >= 3
    assert poller.orders == [order]


@pytest.mark.asyncio
async def test_superseded_result_is_discarded():
    runner = SupersedingRunner()
    release = asyncio.Event()
    
    async def slow():
        await release.wait()
        return "stale"
    
    async def fast():
        return "fresh"
    
    slow_task = asyncio.create_task(runner.run("week", slow))
    await asyncio.sleep(0)
    assert await runner.run("week", fast) == "fresh"
    release.set()
    
    assert await slow_task is None


@pytest.mark.asyncio
async def test_different_keys_do_not_supersede():
    runner = SupersedingRunner()
    release = asyncio.Event()
    
    async def slow():
        await release.wait()
        return "week"
    
    async def fast():
        return "month"
    
    slow_task = asyncio.create_task(runner.run("week", slow))
    await asyncio.sleep(0)
    assert await runner.run("month", fast) == "month"
    release.set()
    
    assert await slow_task == "week"


def test_poller_interval_follows_board_settings():
    async def fetch():
        return []
    
    assert BoardPoller.for_board("kitchen", fetch).interval == settings.kitchen_poll_seconds
    assert BoardPoller.for_board("delivery", fetch).interval == settings.delivery_poll_seconds
    assert poll_interval("manager") == settings.manager_poll_seconds
