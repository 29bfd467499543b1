"""HTTP client creation helpers used by the remote leaderboard client."""

from __future__ import annotations

import os

import httpx

DEFAULT_API_URL = "http://localhost:8080"
DEFAULT_TIMEOUT = 10.0


def get_api_url() -> str:
    return os.getenv("LEADERBOARD_API_URL", DEFAULT_API_URL)


def create_http_client(
    base_url: str | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=base_url or get_api_url(), timeout=timeout)
