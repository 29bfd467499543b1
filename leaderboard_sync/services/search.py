"""Debounced player search with stale-response rejection.

Every query change bumps a generation counter. A search is issued with the
generation current at the moment its debounce window elapsed, and its
response is applied only if no newer query change happened meanwhile. The
order in which responses arrive therefore never matters.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Protocol

from leaderboard_sync.api.errors import TransportError
from leaderboard_sync.models.domain import Entry
from leaderboard_sync.services.state import Observable, SearchPhase, SearchState

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.5

SEARCH_FAILED_MESSAGE = "Failed to search users. Please try again."


class PlayerSearch(Protocol):
    async def search(self, query: str) -> tuple[Entry, ...]: ...


class SearchController(Observable[SearchState]):
    def __init__(self, client: PlayerSearch, debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS):
        if debounce_seconds < 0:
            raise ValueError("debounce_seconds must not be negative")
        super().__init__(SearchState())
        self.client = client
        self.debounce_seconds = debounce_seconds
        self._generation = 0
        self._timer: asyncio.Task[None] | None = None
        self._in_flight: set[asyncio.Task[None]] = set()

    @property
    def generation(self) -> int:
        return self._generation

    def set_query(self, text: str) -> None:
        """Record new input and (re)start the debounce window.

        Must be called from inside a running event loop.
        """
        self._generation += 1
        self._cancel_timer()

        if not text.strip():
            self._set_state(SearchState(query=text))
            return

        self._set_state(replace(self.state, query=text, phase=SearchPhase.DEBOUNCING))
        self._timer = asyncio.get_running_loop().create_task(self._debounce(self._generation))

    async def deactivate(self) -> None:
        """Stop the debounce window and drop whatever is still in flight."""
        self._generation += 1
        pending = [task for task in self._in_flight if not task.done()]
        if self._timer is not None:
            pending.append(self._timer)
        self._cancel_timer()
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    async def join(self) -> None:
        """Wait until the pending window and every issued search have finished."""
        if self._timer is not None:
            await asyncio.gather(self._timer, return_exceptions=True)
        while self._in_flight:
            await asyncio.gather(*self._in_flight, return_exceptions=True)

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    async def _debounce(self, generation: int) -> None:
        await asyncio.sleep(self.debounce_seconds)
        if generation != self._generation:
            return
        self._timer = None
        query = self.state.query
        self._set_state(replace(self.state, phase=SearchPhase.SEARCHING, error=None))
        # Detached from the timer so later keystrokes cancel only the window,
        # never a request that is already on the wire.
        task = asyncio.get_running_loop().create_task(self._run(query, generation))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _run(self, query: str, generation: int) -> None:
        try:
            results = await self.client.search(query)
        except TransportError as exc:
            logger.warning("Search for %r failed: %s", query, exc.message)
            self._fail(query, generation)
            return
        except Exception:
            # Detached task: nobody awaits it, so the error is recorded here.
            logger.exception("Search for %r raised unexpectedly", query)
            self._fail(query, generation)
            return

        if generation != self._generation:
            logger.debug("Discarding stale search response for %r", query)
            return
        self._set_state(
            replace(self.state, results=results, results_query=query, phase=SearchPhase.DONE, error=None)
        )

    def _fail(self, query: str, generation: int) -> None:
        if generation != self._generation:
            logger.debug("Discarding failed search for stale query %r", query)
            return
        self._set_state(
            replace(
                self.state,
                results=(),
                results_query=None,
                phase=SearchPhase.FAILED,
                error=SEARCH_FAILED_MESSAGE,
            )
        )
