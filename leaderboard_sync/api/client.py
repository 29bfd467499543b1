"""Request/response boundary to the remote scoring service."""

from __future__ import annotations

import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from leaderboard_sync.api.errors import (
    HTTP_ERROR,
    INVALID_PAYLOAD,
    NETWORK_ERROR,
    TransportError,
)
from leaderboard_sync.api.http import DEFAULT_TIMEOUT, create_http_client
from leaderboard_sync.models.domain import Entry, Page
from leaderboard_sync.models.schemas import (
    HealthPayload,
    LeaderboardPayload,
    PlayerRow,
    SearchPayload,
    SimulationAck,
)

logger = logging.getLogger(__name__)

PayloadT = TypeVar("PayloadT", bound=BaseModel)


def _to_entries(rows: list[PlayerRow]) -> tuple[Entry, ...]:
    return tuple(Entry(username=r.username, rating=r.rating, rank=r.rank) for r in rows)


class RemoteLeaderboardClient:
    def __init__(
        self,
        base_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self._owns_http = http_client is None
        self.http = http_client or create_http_client(base_url, timeout=timeout)

    async def __aenter__(self) -> RemoteLeaderboardClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self.http.aclose()

    async def fetch_page(self, limit: int, offset: int) -> Page:
        if not isinstance(limit, int) or isinstance(limit, bool) or limit <= 0:
            raise ValueError(f"limit must be a positive integer, got {limit!r}")
        if not isinstance(offset, int) or isinstance(offset, bool) or offset < 0:
            raise ValueError(f"offset must be a non-negative integer, got {offset!r}")

        data = await self._request("GET", "/leaderboard", params={"limit": limit, "offset": offset})
        payload = self._parse(LeaderboardPayload, data, "/leaderboard")
        if len(payload.users) > limit:
            raise TransportError(
                code=INVALID_PAYLOAD,
                message="Leaderboard page is larger than the requested limit",
                details={"path": "/leaderboard", "limit": limit, "received": len(payload.users)},
            )
        return Page(
            entries=_to_entries(payload.users),
            total_count=payload.total_count,
            limit=limit,
            offset=offset,
        )

    async def search(self, query: str) -> tuple[Entry, ...]:
        # Blank queries never reach the service.
        if not query or not query.strip():
            return ()
        data = await self._request("GET", "/search", params={"query": query})
        payload = self._parse(SearchPayload, data, "/search")
        return _to_entries(payload.users)

    async def trigger_simulation(self) -> SimulationAck:
        data = await self._request("POST", "/simulate")
        if not isinstance(data, dict):
            # The acknowledgement body is opaque; only success matters.
            return SimulationAck()
        return self._parse(SimulationAck, data, "/simulate")

    async def ping(self) -> bool:
        data = await self._request("GET", "/health")
        payload = self._parse(HealthPayload, data, "/health")
        return payload.status == "healthy"

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        try:
            response = await self.http.request(method, path, params=params)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise TransportError(
                code=NETWORK_ERROR,
                message=f"Could not reach the scoring service ({method} {path})",
                details={"path": path},
            ) from exc

        if not response.is_success:
            logger.warning("%s %s returned HTTP %s", method, path, response.status_code)
            raise TransportError(
                code=HTTP_ERROR,
                message=f"Scoring service returned HTTP {response.status_code} ({method} {path})",
                status_code=response.status_code,
                details={"path": path},
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            logger.warning("%s %s returned a body that is not JSON", method, path)
            raise TransportError(
                code=INVALID_PAYLOAD,
                message=f"Scoring service returned malformed JSON ({method} {path})",
                status_code=response.status_code,
                details={"path": path},
            ) from exc

    @staticmethod
    def _parse(model: type[PayloadT], data: Any, path: str) -> PayloadT:
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            logger.warning("Unexpected payload from %s: %s", path, exc)
            raise TransportError(
                code=INVALID_PAYLOAD,
                message=f"Scoring service returned an unexpected payload ({path})",
                details={"path": path, "errors": exc.errors()},
            ) from exc
