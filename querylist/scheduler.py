"""
Fetch scheduler - turns query changes into requests and keeps only the latest answer.

Every scheduled request is stamped with a generation number. Only the response
carrying the latest generation reaches the store; anything older is dropped,
even when it succeeded. Search typing is debounced: each keystroke restarts a
timer and only the last one fires.

Usage:
    scheduler = FetchScheduler(fetch, on_result, on_error, debounce_seconds=0.3)
    scheduler.schedule(query, debounce=True)   # search keystroke
    scheduler.schedule(query)                  # anything else, fetch now
    await scheduler.settle()
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from querylist.models import ListResult
from querylist.query import QueryState

logger = logging.getLogger(__name__)

Fetch = Callable[[QueryState], Awaitable[ListResult]]
ResultHandler = Callable[[int, QueryState, ListResult], None]
ErrorHandler = Callable[[int, QueryState, Exception], None]


class FetchScheduler:
    """Debounces and issues list fetches, discarding stale responses."""

    def __init__(
        self,
        fetch: Fetch,
        on_result: ResultHandler,
        on_error: ErrorHandler,
        debounce_seconds: float = 0.3,
        abort_stale_requests: bool = True,
    ):
        self._fetch = fetch
        self._on_result = on_result
        self._on_error = on_error
        self._delay = debounce_seconds
        self._abort_stale = abort_stale_requests
        self._generation = 0
        self._timer: Optional[asyncio.Task] = None
        self._in_flight: dict[int, asyncio.Task] = {}
        self._issued = 0

    @property
    def generation(self) -> int:
        """Latest generation handed out."""
        return self._generation

    @property
    def issued(self) -> int:
        """Number of requests actually sent (debounced keystrokes never count)."""
        return self._issued

    @property
    def pending(self) -> bool:
        """True while a timer is armed or a request is in flight."""
        return self._timer is not None or bool(self._in_flight)

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def schedule(self, query: QueryState, debounce: bool = False) -> int:
        """
        Register a query change and return its generation.

        Any armed timer is cancelled: the newest change always wins.
        """
        self._generation += 1
        generation = self._generation
        self._cancel_timer()

        if debounce and self._delay > 0:
            self._timer = asyncio.create_task(self._fire_later(generation, query))
            logger.debug(f"Generation {generation} debounced for {self._delay}s")
        else:
            self._start(generation, query)
        return generation

    def cancel(self) -> None:
        """Drop the armed timer and every in-flight request (screen unmount)."""
        self._cancel_timer()
        for task in self._in_flight.values():
            task.cancel()
        # Nothing issued so far may commit anymore
        self._generation += 1

    async def settle(self) -> None:
        """Wait until no timer is armed and no request is in flight."""
        while self.pending:
            tasks = [t for t in (self._timer, *self._in_flight.values()) if t is not None]
            await asyncio.gather(*tasks, return_exceptions=True)
            # Handlers may have scheduled follow-up work; yield so it can register
            await asyncio.sleep(0)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def _fire_later(self, generation: int, query: QueryState) -> None:
        await asyncio.sleep(self._delay)
        self._timer = None
        self._start(generation, query)

    def _start(self, generation: int, query: QueryState) -> None:
        if self._abort_stale:
            current = asyncio.current_task()
            for stale_generation, task in list(self._in_flight.items()):
                # A commit handler may schedule a follow-up from inside its own task
                if stale_generation < generation and task is not current:
                    logger.debug(f"Aborting in-flight generation {stale_generation}")
                    task.cancel()

        self._issued += 1
        task = asyncio.create_task(self._run(generation, query))
        self._in_flight[generation] = task
        task.add_done_callback(lambda _t, g=generation: self._in_flight.pop(g, None))

    async def _run(self, generation: int, query: QueryState) -> None:
        try:
            result = await self._fetch(query)
        except asyncio.CancelledError:
            logger.debug(f"Generation {generation} cancelled")
            raise
        except Exception as e:
            if not self.is_current(generation):
                logger.debug(f"Dropping error from stale generation {generation}: {e}")
                return
            self._on_error(generation, query, e)
            return

        if not self.is_current(generation):
            logger.debug(f"Dropping stale response for generation {generation} (latest {self._generation})")
            return
        self._on_result(generation, query, result)
