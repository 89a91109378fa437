"""An asyncio event loop running on a thread of its own."""

from __future__ import annotations

import asyncio
import logging
import threading
import weakref
from concurrent.futures import Future
from typing import Any, Callable, Coroutine, Optional

__all__ = ["EventLoop"]

_log = logging.getLogger(__name__)

DEFAULT_NAME = "event.loop"


def _run_loop(loop: asyncio.AbstractEventLoop, ready: threading.Event) -> None:
    asyncio.set_event_loop(loop)
    loop.call_soon(ready.set)
    try:
        loop.run_forever()
    finally:
        tasks = asyncio.all_tasks(loop)
        for task in tasks:
            task.cancel()
        if tasks:
            loop.run_until_complete(asyncio.gather(*tasks, return_exceptions=True))
        loop.run_until_complete(loop.shutdown_asyncgens())
        loop.close()


def _stop(loop: asyncio.AbstractEventLoop) -> None:
    try:
        loop.call_soon_threadsafe(loop.stop)
    except RuntimeError:
        pass


class EventLoop:
    """A handle to a running event loop thread.

    Closing the handle, or its being garbage-collected, stops the loop;
    tasks still pending are cancelled.
    """

    def __init__(self, name: Optional[str] = None) -> None:
        self.name = DEFAULT_NAME if name is None else name
        self._loop = asyncio.new_event_loop()
        ready = threading.Event()
        self._thread = threading.Thread(
            target=_run_loop, args=(self._loop, ready), name=self.name, daemon=True
        )
        self._thread.start()
        ready.wait()
        self._finalizer = weakref.finalize(self, _stop, self._loop)

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        """The underlying asyncio loop."""
        return self._loop

    @property
    def running(self) -> bool:
        """Whether the loop thread is still alive."""
        return self._thread.is_alive()

    @property
    def closed(self) -> bool:
        """Whether the loop has been asked to stop."""
        return not self._finalizer.alive

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> Future:
        """Run ``coro`` on the loop; returns a future of its result."""
        if self.closed:
            coro.close()
            raise RuntimeError("event loop is closed")
        return asyncio.run_coroutine_threadsafe(coro, self._loop)

    def call_soon(self, func: Callable[..., Any], *args: Any) -> None:
        """Schedule ``func(*args)`` on the loop thread."""
        if self.closed:
            raise RuntimeError("event loop is closed")
        self._loop.call_soon_threadsafe(func, *args)

    def close(self) -> None:
        """Stop the loop; pending tasks are cancelled."""
        if self.closed:
            _log.warning("Event Loop is already finished.")
            return
        self._finalizer()

    def wait(self) -> None:
        """Block until the loop has finished."""
        self._thread.join()