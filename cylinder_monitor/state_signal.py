"""
Observable latest-value signal.

A single writer publishes values; every subscriber first receives the
current value and then each later committed value. Delivery is conflated
(a slow subscriber skips straight to the newest value) and monotonic per
subscriber: it never sees a value older than one it already received.

Must be used from the event loop thread.
"""

import asyncio
from contextlib import aclosing
from typing import AsyncIterator, Generic, Optional, Set, TypeVar

T = TypeVar("T")


class StateSignal(Generic[T]):
    """Latest-value broadcast, in the spirit of a state flow."""

    def __init__(self, initial: Optional[T] = None):
        self._value = initial
        self._version = 0
        self._waiters: Set[asyncio.Event] = set()

    @property
    def value(self) -> Optional[T]:
        return self._value

    @property
    def version(self) -> int:
        return self._version

    @property
    def subscriber_count(self) -> int:
        return len(self._waiters)

    def set(self, value: Optional[T]) -> bool:
        """Publish a value. Equal values are conflated; returns True on change."""
        if value == self._value:
            return False
        self._value = value
        self._version += 1
        for waiter in list(self._waiters):
            waiter.set()
        return True

    async def subscribe(self) -> AsyncIterator[Optional[T]]:
        """Yield the current value, then every subsequent change."""
        changed = asyncio.Event()
        self._waiters.add(changed)
        try:
            seen = self._version
            yield self._value
            while True:
                await changed.wait()
                changed.clear()
                if self._version == seen:
                    continue
                seen = self._version
                yield self._value
        finally:
            self._waiters.discard(changed)

    async def wait_for(self, predicate, timeout: Optional[float] = None) -> Optional[T]:
        """Wait until the current value satisfies ``predicate`` and return it."""

        async def _wait() -> Optional[T]:
            async with aclosing(self.subscribe()) as values:
                async for value in values:
                    if predicate(value):
                        return value
            return None

        return await asyncio.wait_for(_wait(), timeout)
