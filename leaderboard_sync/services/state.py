"""State held by the list and search controllers, plus the observer plumbing.

Renderers never read controller internals: they subscribe and receive the
latest immutable state object after every transition.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

from leaderboard_sync.models.domain import Entry

logger = logging.getLogger(__name__)


class ListPhase(str, Enum):
    IDLE = "idle"
    INITIAL_LOADING = "initial_loading"
    REFRESHING = "refreshing"
    LOADING_MORE = "loading_more"
    FAILED = "failed"


class SearchPhase(str, Enum):
    EMPTY = "empty"
    DEBOUNCING = "debouncing"
    SEARCHING = "searching"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ListState:
    entries: tuple[Entry, ...] = ()
    offset: int = 0
    total_count: int = 0
    phase: ListPhase = ListPhase.IDLE
    error: str | None = None
    simulating: bool = False

    @property
    def has_more(self) -> bool:
        return len(self.entries) < self.total_count

    @property
    def loading(self) -> bool:
        return self.phase is ListPhase.INITIAL_LOADING

    @property
    def refreshing(self) -> bool:
        return self.phase is ListPhase.REFRESHING

    @property
    def loading_more(self) -> bool:
        return self.phase is ListPhase.LOADING_MORE

    @property
    def busy(self) -> bool:
        """True while a fetch or a simulation request is outstanding."""
        return self.simulating or self.phase in (
            ListPhase.INITIAL_LOADING,
            ListPhase.REFRESHING,
            ListPhase.LOADING_MORE,
        )


@dataclass(frozen=True, slots=True)
class SearchState:
    query: str = ""
    results: tuple[Entry, ...] = ()
    # Query that produced ``results``; lags ``query`` while a newer one is pending.
    results_query: str | None = None
    phase: SearchPhase = SearchPhase.EMPTY
    error: str | None = None

    @property
    def loading(self) -> bool:
        return self.phase is SearchPhase.SEARCHING

    @property
    def searched(self) -> bool:
        return self.phase is SearchPhase.DONE


StateT = TypeVar("StateT")
Listener = Callable[[StateT], None]


class Observable(Generic[StateT]):
    """Holds one state value and notifies listeners whenever it is replaced."""

    def __init__(self, initial: StateT):
        self._state = initial
        self._listeners: list[Listener[StateT]] = []

    @property
    def state(self) -> StateT:
        return self._state

    def subscribe(self, listener: Listener[StateT]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_state(self, state: StateT) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                # Listeners never interrupt a transition.
                logger.exception("State listener %r failed", listener)
