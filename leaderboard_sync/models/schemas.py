"""Pydantic schemas for payloads returned by the remote scoring service.

Responses are validated against these models before they reach the
controllers; a payload that does not fit is treated as a transport failure.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class PlayerRow(BaseModel):
    username: str = Field(min_length=1)
    rating: int
    rank: int = Field(ge=1)


class LeaderboardPayload(BaseModel):
    users: list[PlayerRow]
    total_count: int = Field(ge=0)
    limit: int | None = None
    offset: int | None = None


class SearchPayload(BaseModel):
    users: list[PlayerRow]
    query: str | None = None


class SimulationAck(BaseModel):
    status: str | None = None
    message: str | None = None


class HealthPayload(BaseModel):
    status: str
    time: str | None = None
