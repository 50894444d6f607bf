"""Request throttling primitives: a spacing rate limiter and a client pool."""

from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Generic, Iterable, List, TypeVar

T = TypeVar("T")


class RateLimiter:
    """Enforce a minimum interval between acquisitions (burst capacity 1).

    The first acquisition passes immediately; each later one waits until
    `interval` seconds have elapsed since the previous grant.
    """

    def __init__(self, interval: float, clock: Callable[[], float] = time.monotonic) -> None:
        if interval < 0:
            raise ValueError("interval must be >= 0")
        self.interval = interval
        self._clock = clock
        self._lock = asyncio.Lock()
        self._next_at: float | None = None

    async def acquire(self) -> None:
        async with self._lock:
            now = self._clock()
            if self._next_at is not None and now < self._next_at:
                await asyncio.sleep(self._next_at - now)
                now = self._clock()
            self._next_at = now + self.interval


class ClientPool(Generic[T]):
    """Fixed set of pre-built clients checked out by concurrent tasks."""

    def __init__(self, clients: Iterable[T]) -> None:
        self._clients: List[T] = list(clients)
        if not self._clients:
            raise ValueError("a client pool needs at least one client")
        self._idle: asyncio.Queue[T] = asyncio.Queue()
        for client in self._clients:
            self._idle.put_nowait(client)

    @property
    def size(self) -> int:
        return len(self._clients)

    @property
    def available(self) -> int:
        return self._idle.qsize()

    @asynccontextmanager
    async def checkout(self) -> AsyncIterator[T]:
        """Borrow a client, waiting while every client is in use."""
        client = await self._idle.get()
        try:
            yield client
        finally:
            self._idle.put_nowait(client)


__all__ = ["RateLimiter", "ClientPool"]
