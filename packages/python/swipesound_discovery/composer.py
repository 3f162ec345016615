from __future__ import annotations

import logging
import random
from typing import Iterable, Sequence

from swipesound_core.config import GENRE_TAXONOMY
from swipesound_core.types import Candidate, Decision, FeedParams, GenreId, Identity

from .fetcher import CandidateFetcher
from .genres import select_genres
from .history import analyze_history
from .mixer import mix_feed
from .types import CatalogClient, FeedComposition, HistoryAnalysis, InteractionHistory

log = logging.getLogger(__name__)


class FeedComposer:
    """
    Compose one discovery feed: analyze recent history, pick genre
    partitions, fetch pools concurrently and shuffle them together.
    Nothing is cached between calls.
    Without a history store every viewer gets an unpersonalized feed.
    """

    def __init__(
        self,
        *,
        history: InteractionHistory | None,
        catalog: CatalogClient,
        params: FeedParams | None = None,
        taxonomy: Sequence[GenreId] | None = None,
        timeout_s: float = 5.0,
        rng: random.Random | None = None,
    ):
        self.history = history
        self.params = params or FeedParams()
        self.taxonomy = list(taxonomy if taxonomy is not None else GENRE_TAXONOMY)
        self.rng = rng or random.Random()
        self.fetcher = CandidateFetcher(
            catalog, params=self.params, timeout_s=timeout_s, rng=self.rng
        )

    async def compose(
        self,
        identity: Identity,
        preferences: Iterable[GenreId] = (),
    ) -> FeedComposition:
        analysis = HistoryAnalysis()
        liked = []
        if self.history is not None and not identity.is_empty:
            records = await self.history.recent(identity, self.params.history_window)
            analysis = analyze_history(records, self.params)
            if not analysis.fatigued:
                liked = list(
                    await self.history.recent(
                        identity, self.params.seed_pool, decision=Decision.ACCEPT
                    )
                )

        genres = select_genres(
            taxonomy=self.taxonomy,
            preferences=preferences,
            aversion=analysis.aversion,
            fatigued=analysis.fatigued,
            k=self.params.genres_per_round,
            rng=self.rng,
        )
        log.debug(
            "Feed plan: fatigued=%s aversion=%s genres=%s seeds=%d",
            analysis.fatigued,
            sorted(analysis.aversion),
            genres,
            len(liked),
        )

        fetched = await self.fetcher.fetch(
            genre_ids=genres, liked=liked, fatigued=analysis.fatigued
        )
        candidates = mix_feed(fetched.expansion_pool, fetched.chart_pool, self.rng)
        return FeedComposition(
            candidates=candidates, analysis=analysis, genres=genres, fetch=fetched
        )

    async def compose_feed(
        self,
        identity: Identity,
        preferences: Iterable[GenreId] = (),
    ) -> list[Candidate]:
        composition = await self.compose(identity, preferences)
        return composition.candidates
