"""Session wiring for the remote client and both view controllers."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx

from leaderboard_sync.api.client import RemoteLeaderboardClient
from leaderboard_sync.api.http import DEFAULT_TIMEOUT
from leaderboard_sync.services.pagination import DEFAULT_PAGE_LIMIT, PaginatedListController
from leaderboard_sync.services.search import DEFAULT_DEBOUNCE_SECONDS, SearchController

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class LeaderboardSession:
    client: RemoteLeaderboardClient
    board: PaginatedListController
    search: SearchController


@asynccontextmanager
async def open_session(
    base_url: str | None = None,
    *,
    http_client: httpx.AsyncClient | None = None,
    limit: int = DEFAULT_PAGE_LIMIT,
    debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
    timeout: float = DEFAULT_TIMEOUT,
    activate: bool = True,
) -> AsyncIterator[LeaderboardSession]:
    client = RemoteLeaderboardClient(base_url, http_client=http_client, timeout=timeout)
    session = LeaderboardSession(
        client=client,
        board=PaginatedListController(client, limit=limit),
        search=SearchController(client, debounce_seconds=debounce_seconds),
    )
    try:
        if activate:
            await session.board.activate()
            logger.info(
                "Leaderboard session started with %d of %d players loaded",
                len(session.board.state.entries),
                session.board.state.total_count,
            )
        yield session
    finally:
        await session.search.deactivate()
        await client.aclose()
