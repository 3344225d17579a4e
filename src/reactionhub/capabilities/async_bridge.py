"""Blocking bridge from script threads to host coroutines.

Script callbacks run synchronously on dispatch worker threads, but several
host services (points ledger, chat platform, speech) are async. run() blocks
the calling thread until the awaitable finishes.

// [LAW:single-enforcer] The only place script code crosses into asyncio.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import inspect
import threading
from collections.abc import Awaitable


async def _await(awaitable: Awaitable[object]) -> object:
    return await awaitable


class AsyncBridge:
    def __init__(self, loop: asyncio.AbstractEventLoop | None = None, timeout: float | None = 30.0) -> None:
        self._loop = loop
        self._timeout = timeout
        self._lock = threading.Lock()

    @property
    def loop(self) -> asyncio.AbstractEventLoop | None:
        return self._loop

    def attach(self, loop: asyncio.AbstractEventLoop) -> None:
        """Route awaitables to the host's running event loop."""
        with self._lock:
            self._loop = loop

    def detach(self) -> None:
        with self._lock:
            self._loop = None

    def run(self, value: object) -> object:
        """Resolve value: awaitables are driven to completion, anything else passes through."""
        if not inspect.isawaitable(value):
            return value

        with self._lock:
            loop = self._loop

        try:
            current = asyncio.get_running_loop()
        except RuntimeError:
            current = None

        if loop is not None and loop.is_running():
            if current is loop:
                _discard(value)
                raise RuntimeError("AsyncBridge.run() called on the host loop thread; this would deadlock")
            future = asyncio.run_coroutine_threadsafe(_await(value), loop)
            try:
                return future.result(self._timeout)
            except concurrent.futures.TimeoutError:
                future.cancel()
                raise

        if current is not None:
            _discard(value)
            raise RuntimeError("AsyncBridge.run() called inside a running event loop")
        # No host loop: drive it on a private loop for this call.
        return asyncio.run(_await(value))


def _discard(value: object) -> None:
    close = getattr(value, "close", None)
    if inspect.iscoroutine(value) and close is not None:
        close()
