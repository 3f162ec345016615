from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Protocol, Sequence

from swipesound_catalog.deezer_client import CatalogTrack
from swipesound_core.types import (
    Candidate,
    Decision,
    DecisionRecord,
    GenreId,
    GenreStat,
    Identity,
)


class CatalogClient(Protocol):
    async def chart_tracks(self, genre_id: int, limit: int = 40) -> List[CatalogTrack]: ...

    async def related_tracks(self, track_id: int, limit: int = 20) -> List[CatalogTrack]: ...


class InteractionHistory(Protocol):
    async def recent(
        self,
        identity: Identity,
        limit: int,
        *,
        decision: Decision | None = None,
    ) -> Sequence[DecisionRecord]: ...


@dataclass
class HistoryAnalysis:
    stats: dict[GenreId, GenreStat] = field(default_factory=dict)
    aversion: set[GenreId] = field(default_factory=set)
    fatigued: bool = False
    analyzed: int = 0


@dataclass
class FetchError:
    source: str  # "related:<item_id>" | "chart:<genre_id>"
    error: str


@dataclass
class FetchResult:
    expansion_pool: list[Candidate] = field(default_factory=list)
    chart_pool: list[Candidate] = field(default_factory=list)
    errors: list[FetchError] = field(default_factory=list)
    seed_item_id: int | None = None
    used_fallback: bool = False


@dataclass
class FeedComposition:
    candidates: list[Candidate]
    analysis: HistoryAnalysis
    genres: list[GenreId]
    fetch: FetchResult
