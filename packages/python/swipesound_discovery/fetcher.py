import asyncio
import logging
import random
from typing import Awaitable, Sequence

from swipesound_catalog.deezer_client import CatalogTrack
from swipesound_core.config import ALL_GENRES_ID
from swipesound_core.errors import UpstreamUnavailable
from swipesound_core.types import (
    Candidate,
    DecisionRecord,
    DisplayMetadata,
    FeedParams,
    GenreId,
)

from .types import CatalogClient, FetchError, FetchResult

log = logging.getLogger(__name__)


def to_candidate(track: CatalogTrack, source_genre_id: GenreId | None) -> Candidate:
    return Candidate(
        item_id=track.id,
        display=DisplayMetadata(
            title=track.title,
            artist_name=track.artist.name,
            cover_art_url=track.album.cover_big or track.album.cover_medium,
            preview_url=track.preview or None,
        ),
        source_genre_id=source_genre_id,
        payload=track.model_dump(),
    )


class CandidateFetcher:
    """
    Fan out one related-item expansion and one chart pull per genre, all
    concurrently. Each call settles on its own (result or error) and a
    failure never cancels its siblings.
    """

    def __init__(
        self,
        catalog: CatalogClient,
        *,
        params: FeedParams | None = None,
        timeout_s: float = 5.0,
        rng: random.Random | None = None,
    ):
        self.catalog = catalog
        self.params = params or FeedParams()
        self.timeout_s = timeout_s
        self.rng = rng or random.Random()

    async def fetch(
        self,
        *,
        genre_ids: Sequence[GenreId],
        liked: Sequence[DecisionRecord] = (),
        fatigued: bool = False,
    ) -> FetchResult:
        result = FetchResult()
        jobs: list[tuple[str, GenreId | None, Awaitable[list[CatalogTrack]]]] = []

        seed = None if fatigued else self.pick_seed(liked)
        if seed is not None:
            result.seed_item_id = seed.item_id
            jobs.append(
                (
                    f"related:{seed.item_id}",
                    seed.genre_id,
                    self.catalog.related_tracks(
                        seed.item_id, limit=self.params.related_limit
                    ),
                )
            )
        for gid in genre_ids:
            jobs.append(
                (
                    f"chart:{gid}",
                    gid,
                    self.catalog.chart_tracks(gid, limit=self.params.chart_limit),
                )
            )

        settled = await asyncio.gather(
            *(self._with_timeout(coro) for _, _, coro in jobs),
            return_exceptions=True,
        )

        for (source, gid, _), outcome in zip(jobs, settled):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                log.warning("Catalog fetch %s failed: %r", source, outcome)
                result.errors.append(FetchError(source=source, error=repr(outcome)))
                continue
            pool = (
                result.expansion_pool
                if source.startswith("related:")
                else result.chart_pool
            )
            pool.extend(to_candidate(t, gid) for t in outcome)

        if not result.chart_pool:
            await self._fallback(result)
        return result

    def pick_seed(self, liked: Sequence[DecisionRecord]) -> DecisionRecord | None:
        recent = list(liked[: self.params.seed_pool])
        if not recent:
            return None
        return self.rng.choice(recent)

    async def _fallback(self, result: FetchResult) -> None:
        log.warning(
            "Chart pool empty after %d genre pulls; falling back to unfiltered chart",
            sum(1 for e in result.errors if e.source.startswith("chart:")),
        )
        result.used_fallback = True
        try:
            tracks = await self._with_timeout(
                self.catalog.chart_tracks(ALL_GENRES_ID, limit=self.params.chart_limit)
            )
        except Exception as e:
            log.error("Unfiltered chart fallback failed: %r", e)
            result.errors.append(FetchError(source=f"chart:{ALL_GENRES_ID}", error=repr(e)))
            raise UpstreamUnavailable("catalog unavailable, try again shortly") from e
        result.chart_pool.extend(to_candidate(t, None) for t in tracks)

    async def _with_timeout(self, coro: Awaitable[list[CatalogTrack]]) -> list[CatalogTrack]:
        return await asyncio.wait_for(coro, timeout=self.timeout_s)
