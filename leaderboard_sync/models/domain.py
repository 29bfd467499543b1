"""Immutable records handed from the client to the controllers."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Entry:
    username: str
    rating: int
    rank: int


@dataclass(frozen=True, slots=True)
class Page:
    entries: tuple[Entry, ...]
    total_count: int
    limit: int
    offset: int
