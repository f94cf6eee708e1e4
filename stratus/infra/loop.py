"""Background event loop shared by all clients of a context.

Coroutines are submitted from any thread and come back as
``concurrent.futures.Future`` handles, so synchronous callers can either
attach continuations or block on ``result()``.
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Coroutine
from concurrent.futures import Future
from typing import Any

from loguru import logger


class EventLoopThread:
    """Runs an asyncio event loop in a daemon thread."""

    def __init__(self, name: str = "stratus-event-loop") -> None:
        self._name = name
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()
        self._log = logger.bind(component="loop")

    @property
    def started(self) -> bool:
        return self._loop is not None

    @property
    def running(self) -> bool:
        return self._loop is not None and self._loop.is_running()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._ensure_started()

    def _ensure_started(self) -> asyncio.AbstractEventLoop:
        with self._lock:
            if self._loop is None:
                self._loop = asyncio.new_event_loop()
                self._thread = threading.Thread(
                    target=self._run_loop,
                    daemon=True,
                    name=self._name,
                )
                self._thread.start()
                self._log.debug("Started event loop thread {name}", name=self._name)
            return self._loop

    def _run_loop(self) -> None:
        """Run event loop in background thread."""
        assert self._loop is not None
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    def submit[T](self, coro: Coroutine[Any, Any, T]) -> Future[T]:
        """Schedule a coroutine on the loop without waiting for it."""
        loop = self._ensure_started()
        return asyncio.run_coroutine_threadsafe(coro, loop)

    def run_sync[T](self, coro: Coroutine[Any, Any, T], timeout: float | None = None) -> T:
        """Run coroutine synchronously."""
        return self.submit(coro).result(timeout=timeout)

    def stop(self, timeout: float = 10.0) -> None:
        with self._lock:
            loop, thread = self._loop, self._thread
            self._loop = None
            self._thread = None
        if loop is None:
            return

        loop.call_soon_threadsafe(loop.stop)
        self._log.debug("Stopping event loop")
        if thread is not None:
            thread.join(timeout=timeout)
        if not loop.is_running():
            loop.close()
