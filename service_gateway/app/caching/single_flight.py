"""
Request coalescing for concurrent cache misses.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict

from shared.logging import get_logger


class _Flight:
    __slots__ = ("task", "waiters")

    def __init__(self, task: "asyncio.Task[Any]"):
        self.task = task
        self.waiters = 0


class SingleFlight:
    """Share one in-flight call among concurrent callers of the same key.

    The call runs in its own task. A caller that is cancelled stops waiting
    without disturbing the others; once every caller has gone the call
    itself is cancelled.
    """

    def __init__(self, name: str = "default"):
        self.name = name
        self.logger = get_logger(f"gateway.single_flight.{name}")
        self._flights: Dict[str, _Flight] = {}

    async def do(self, key: str, fn: Callable[[], Awaitable[Any]]) -> Any:
        """Run ``fn`` once for ``key`` and hand its outcome to every waiter."""
        flight = self._flights.get(key)
        if flight is None:
            flight = _Flight(asyncio.create_task(fn()))
            self._flights[key] = flight
            flight.task.add_done_callback(lambda _task: self._forget(key, flight))
        else:
            self.logger.debug("Joined in-flight call", key=key, waiters=flight.waiters + 1)

        flight.waiters += 1
        try:
            return await asyncio.shield(flight.task)
        except asyncio.CancelledError:
            if not flight.task.done() and flight.waiters == 1:
                self.logger.info("Last waiter left, cancelling in-flight call", key=key)
                # Later callers must start a fresh call rather than join a dying one
                self._forget(key, flight)
                flight.task.cancel()
            raise
        finally:
            flight.waiters -= 1

    def in_flight(self, key: str) -> bool:
        return key in self._flights

    def _forget(self, key: str, flight: _Flight) -> None:
        if self._flights.get(key) is flight:
            del self._flights[key]
