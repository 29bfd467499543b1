from __future__ import annotations

import asyncio
import random
from datetime import datetime, timezone

import httpx
import pytest
from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse

from leaderboard_sync.api.client import RemoteLeaderboardClient
from leaderboard_sync.models.domain import Entry, Page

SERVICE_URL = "http://scoring.test"
NAMED_PLAYERS = ["anna", "annabelle", "joanne", "hannah", "bob"]
PLAYER_COUNT = 1245


def seed_players(count: int = PLAYER_COUNT) -> dict[str, int]:
    names = NAMED_PLAYERS + [f"player_{i:04d}" for i in range(count - len(NAMED_PLAYERS))]
    # Distinct ratings keep dense ranks equal to list positions.
    return {name: 5000 - index * 3 for index, name in enumerate(names)}


def ranked_rows(players: dict[str, int]) -> list[dict]:
    rows = []
    rank = 0
    previous = None
    for username, rating in sorted(players.items(), key=lambda item: (-item[1], item[0])):
        if rating != previous:
            rank += 1
            previous = rating
        rows.append({"rank": rank, "username": username, "rating": rating})
    return rows


def create_scoring_service(players: dict[str, int]) -> FastAPI:
    app = FastAPI(title="Scoring service stand-in")
    app.state.players = players
    app.state.requests = []
    app.state.failing_paths = set()
    app.state.rng = random.Random(7)

    @app.middleware("http")
    async def record_requests(request: Request, call_next):
        app.state.requests.append((request.method, request.url.path, dict(request.query_params)))
        if request.url.path in app.state.failing_paths:
            return JSONResponse(status_code=503, content={"error": "unavailable"})
        return await call_next(request)

    @app.get("/leaderboard")
    async def leaderboard(limit: int = Query(default=50, gt=0), offset: int = Query(default=0, ge=0)):
        rows = ranked_rows(app.state.players)
        return {
            "users": rows[offset : offset + limit],
            "total_count": len(rows),
            "limit": limit,
            "offset": offset,
        }

    @app.get("/search")
    async def search(query: str = ""):
        if not query:
            return JSONResponse(status_code=400, content={"error": "Query parameter is required"})
        needle = query.lower()
        matches = [row for row in ranked_rows(app.state.players) if needle in row["username"].lower()]
        return {"users": matches[:100], "query": query}

    @app.post("/simulate")
    async def simulate():
        chosen = app.state.rng.sample(sorted(app.state.players), 50)
        for index, username in enumerate(chosen):
            # The first few land above everyone else.
            app.state.players[username] = 6000 + index if index < 5 else app.state.rng.randint(100, 1000)
        return {"status": "success", "message": "Updated 50 users (5 with high scores)"}

    @app.get("/health")
    async def health():
        return {"status": "healthy", "time": datetime.now(timezone.utc).isoformat()}

    return app


class ScriptedRemote:
    """Client double whose calls stay pending until the test resolves them."""

    def __init__(self):
        self.calls: list[tuple] = []
        self.pending: list[asyncio.Future] = []

    def _call(self, *call) -> asyncio.Future:
        future = asyncio.get_running_loop().create_future()
        self.calls.append(call)
        self.pending.append(future)
        return future

    async def fetch_page(self, limit: int, offset: int) -> Page:
        return await self._call("fetch_page", limit, offset)

    async def search(self, query: str) -> tuple[Entry, ...]:
        return await self._call("search", query)

    async def trigger_simulation(self):
        return await self._call("trigger_simulation")

    async def wait_for_calls(self, count: int) -> None:
        async def poll():
            while len(self.calls) < count:
                await asyncio.sleep(0)

        await asyncio.wait_for(poll(), timeout=1)


@pytest.fixture()
def scoring_service() -> FastAPI:
    return create_scoring_service(seed_players())


@pytest.fixture()
def service_requests(scoring_service: FastAPI):
    def requests_to(path: str) -> list[dict]:
        return [params for _, request_path, params in scoring_service.state.requests if request_path == path]

    return requests_to


@pytest.fixture()
async def service_http(scoring_service: FastAPI):
    transport = httpx.ASGITransport(app=scoring_service)
    async with httpx.AsyncClient(transport=transport, base_url=SERVICE_URL) as http_client:
        yield http_client


@pytest.fixture()
def remote(service_http: httpx.AsyncClient) -> RemoteLeaderboardClient:
    return RemoteLeaderboardClient(http_client=service_http)


@pytest.fixture()
def scripted() -> ScriptedRemote:
    return ScriptedRemote()
