import asyncio
import logging
import threading

import pytest

from rpckit.reactor import EventLoop


def test_spawn_runs_on_named_thread():
    loop = EventLoop("rpckit-test")

    async def thread_name():
        return threading.current_thread().name

    try:
        assert loop.spawn(thread_name()).result(timeout=5) == "rpckit-test"
    finally:
        loop.close()
        loop.wait()


def test_default_name():
    loop = EventLoop()
    try:
        assert loop.name == "event.loop"
    finally:
        loop.close()
        loop.wait()


def test_spawn_returns_coroutine_result():
    loop = EventLoop()

    async def add(a, b):
        await asyncio.sleep(0)
        return a + b

    try:
        assert loop.spawn(add(2, 3)).result(timeout=5) == 2 + 3
    finally:
        loop.close()
        loop.wait()


def test_close_stops_thread():
    loop = EventLoop()
    assert loop.running
    loop.close()
    loop.wait()
    assert not loop.running
    assert loop.closed


def test_spawn_after_close_raises():
    loop = EventLoop()
    loop.close()
    loop.wait()
    with pytest.raises(RuntimeError):
        loop.spawn(asyncio.sleep(0))


def test_pending_task_cancelled_on_close():
    loop = EventLoop()
    future = loop.spawn(asyncio.sleep(60))
    loop.close()
    loop.wait()
    assert future.cancelled()


def test_second_close_warns(caplog):
    loop = EventLoop()
    loop.close()
    with caplog.at_level(logging.WARNING, logger="rpckit.reactor"):
        loop.close()
    loop.wait()
    assert "already finished" in caplog.text