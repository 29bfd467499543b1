"""Ranked-list state for the browsing view: paging, refresh and simulation."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Protocol

from leaderboard_sync.api.errors import TransportError
from leaderboard_sync.models.domain import Page
from leaderboard_sync.models.schemas import SimulationAck
from leaderboard_sync.services.state import ListPhase, ListState, Observable

logger = logging.getLogger(__name__)

DEFAULT_PAGE_LIMIT = 50

LOAD_FAILED_MESSAGE = "Failed to load leaderboard. Please try again."
SIMULATE_FAILED_MESSAGE = "Failed to simulate gameplay"


class PageSource(Protocol):
    async def fetch_page(self, limit: int, offset: int) -> Page: ...

    async def trigger_simulation(self) -> SimulationAck: ...


class PaginatedListController(Observable[ListState]):
    """Owns the accumulated ranked list and its loading phases.

    At most one network operation is outstanding at a time. Requests that
    arrive while one is in flight return without doing anything, so the
    phase check and the phase change happen before the first await.
    """

    def __init__(self, client: PageSource, limit: int = DEFAULT_PAGE_LIMIT):
        if limit <= 0:
            raise ValueError("limit must be positive")
        super().__init__(ListState())
        self.client = client
        self.limit = limit
        self._activated = False

    async def activate(self) -> None:
        if self._activated:
            return
        self._activated = True
        await self._load_first_page(ListPhase.INITIAL_LOADING)

    async def retry(self) -> None:
        if self.state.phase is not ListPhase.FAILED:
            return
        await self._load_first_page(ListPhase.INITIAL_LOADING)

    async def refresh(self) -> None:
        if self.state.phase is not ListPhase.IDLE or self.state.busy:
            return
        await self._load_first_page(ListPhase.REFRESHING)

    async def load_more(self) -> None:
        state = self.state
        if state.phase is not ListPhase.IDLE or state.busy or not state.has_more:
            return

        self._set_state(replace(state, phase=ListPhase.LOADING_MORE))
        try:
            page = await self.client.fetch_page(self.limit, state.offset)
        except TransportError as exc:
            # Paging is a convenience; the caller simply asks again.
            logger.info("Load more at offset %d failed: %s", state.offset, exc.message)
            self._set_state(replace(self.state, phase=ListPhase.IDLE))
            return
        except BaseException:
            self._set_state(replace(self.state, phase=ListPhase.IDLE))
            raise

        current = self.state
        self._set_state(
            replace(
                current,
                entries=current.entries + page.entries,
                offset=current.offset + self.limit,
                total_count=page.total_count,
                phase=ListPhase.IDLE,
                error=None,
            )
        )

    async def trigger_simulation(self) -> SimulationAck | None:
        state = self.state
        if state.phase is not ListPhase.IDLE or state.busy:
            return None

        self._set_state(replace(state, simulating=True))
        try:
            ack = await self.client.trigger_simulation()
        except TransportError as exc:
            logger.warning("Simulation request failed: %s", exc.message)
            self._set_state(replace(self.state, simulating=False, error=SIMULATE_FAILED_MESSAGE))
            return None
        except BaseException:
            self._set_state(replace(self.state, simulating=False))
            raise

        self._set_state(replace(self.state, simulating=False, error=None))
        # Mutated scores can reorder the top, so the whole list is reloaded.
        await self.refresh()
        return ack

    async def _load_first_page(self, phase: ListPhase) -> None:
        self._set_state(replace(self.state, phase=phase))
        try:
            page = await self.client.fetch_page(self.limit, 0)
        except TransportError as exc:
            logger.warning("Leaderboard %s failed: %s", phase.value, exc.message)
            if phase is ListPhase.REFRESHING:
                # Previous entries stay visible.
                self._set_state(replace(self.state, phase=ListPhase.IDLE, error=LOAD_FAILED_MESSAGE))
            else:
                self._set_state(replace(self.state, phase=ListPhase.FAILED, error=LOAD_FAILED_MESSAGE))
            return
        except BaseException:
            # Cancelled or unexpected: release the guard so the caller can try again.
            fallback = ListPhase.IDLE if phase is ListPhase.REFRESHING else ListPhase.FAILED
            self._set_state(replace(self.state, phase=fallback))
            raise

        self._set_state(
            replace(
                self.state,
                entries=page.entries,
                offset=self.limit,
                total_count=page.total_count,
                phase=ListPhase.IDLE,
                error=None,
            )
        )
