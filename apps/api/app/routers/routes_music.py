"""
/music endpoints. Discovery feed, swipe recording and the liked-songs list.
"""

import asyncio
import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from swipesound_core.config import GENRE_TAXONOMY
from swipesound_core.errors import DomainError
from swipesound_core.types import Candidate, DisplayMetadata, FeedParams, Identity
from swipesound_discovery.composer import FeedComposer
from swipesound_user.interactions.schemas import LikedItem
from swipesound_user.interactions.user_interactions_repo import SupabaseInteractionsRepo
from swipesound_user.interactions.user_interactions_service import InteractionsService
from swipesound_user.settings.user_settings_repo import SupabaseUserSettingsRepo
from swipesound_user.settings.user_settings_service import UserSettingsService

from app.deps.deps import get_catalog, get_catalog_timeout, get_feed_params, get_logger
from app.deps.supabase_client import (
    get_identity,
    get_supabase_client,
    get_supabase_client_optional,
)
from app.schemas import (
    AlbumView,
    ArtistView,
    GenreView,
    LikedSongView,
    SongView,
    SuccessOut,
    SwipeRequest,
)

router = APIRouter(prefix="/music", tags=["music"])

NO_STORE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, proxy-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}
log = logging.getLogger(__name__)


def get_interactions_repo(sb=Depends(get_supabase_client)) -> SupabaseInteractionsRepo:
    return SupabaseInteractionsRepo(sb)


def get_service(
    repo: SupabaseInteractionsRepo = Depends(get_interactions_repo),
) -> InteractionsService:
    return InteractionsService(repo)


def get_settings_service(
    sb=Depends(get_supabase_client_optional),
) -> Optional[UserSettingsService]:
    return UserSettingsService(SupabaseUserSettingsRepo(sb)) if sb is not None else None


def get_feed_composer(
    sb=Depends(get_supabase_client_optional),
    catalog=Depends(get_catalog),
    params: FeedParams = Depends(get_feed_params),
    timeout_s: float = Depends(get_catalog_timeout),
) -> FeedComposer:
    history = SupabaseInteractionsRepo(sb) if sb is not None else None
    return FeedComposer(history=history, catalog=catalog, params=params, timeout_s=timeout_s)


# ---- Discovery feed ----
@router.get("/discover", response_model=List[SongView])
async def discover(
    response: Response,
    identity: Identity = Depends(get_identity),
    composer: FeedComposer = Depends(get_feed_composer),
    settings_service: Optional[UserSettingsService] = Depends(get_settings_service),
    logger=Depends(get_logger),
):
    response.headers.update(NO_STORE_HEADERS)
    try:
        preferences = (
            await settings_service.preference_set(identity) if settings_service else set()
        )
        composition = await composer.compose(identity, preferences)
    except DomainError:
        raise
    except Exception:
        error_id = str(uuid.uuid4())
        log.exception("Feed composition failed (error_id=%s)", error_id)
        raise HTTPException(500, f"Failed to compose feed (error_id={error_id})")

    asyncio.create_task(
        logger.log_feed_composed(
            identity=identity,
            genres=composition.genres,
            fatigued=composition.analysis.fatigued,
            aversion=composition.analysis.aversion,
            n_candidates=len(composition.candidates),
            n_expansion=len(composition.fetch.expansion_pool),
            seed_item_id=composition.fetch.seed_item_id,
            used_fallback=composition.fetch.used_fallback,
            failed_sources=[e.source for e in composition.fetch.errors],
        )
    )
    return [_song_view(c) for c in composition.candidates]


# ---- Record a swipe ----
@router.post("/swipe", response_model=SuccessOut)
async def swipe(
    req: SwipeRequest,
    identity: Identity = Depends(get_identity),
    service: InteractionsService = Depends(get_service),
    logger=Depends(get_logger),
):
    record = await service.record_decision(
        identity,
        req.song_id,
        req.type,
        genre_id=req.genre_id,
        display=DisplayMetadata(
            title=req.title,
            artist_name=req.artist_name,
            cover_art_url=req.album_art,
            preview_url=req.preview_url,
        ),
    )
    asyncio.create_task(
        logger.log_decision(
            identity=identity,
            item_id=record.item_id,
            decision=record.decision.value,
            genre_id=record.genre_id,
        )
    )
    return SuccessOut()


# ---- Liked songs ----
@router.get("/liked", response_model=List[LikedSongView])
async def liked(
    identity: Identity = Depends(get_identity),
    service: InteractionsService = Depends(get_service),
):
    items = await service.list_liked_items(identity)
    return [_liked_view(i) for i in items]


@router.delete("/liked/{song_id}", response_model=SuccessOut)
async def delete_liked(
    song_id: int,
    identity: Identity = Depends(get_identity),
    service: InteractionsService = Depends(get_service),
):
    await service.remove_liked_item(identity, song_id)
    return SuccessOut()


# ---- Genre taxonomy ----
@router.get("/genres", response_model=List[GenreView])
async def genres():
    return [GenreView(id=gid, name=name) for gid, name in GENRE_TAXONOMY.items()]


def _song_view(c: Candidate) -> SongView:
    album = (c.payload or {}).get("album") or {}
    return SongView(
        id=c.item_id,
        title=c.display.title or "",
        preview=c.display.preview_url or "",
        artist=ArtistView(name=c.display.artist_name or "Unknown Artist"),
        album=AlbumView(
            cover_small=album.get("cover_small") or c.display.cover_art_url,
            cover_big=c.display.cover_art_url,
        ),
        genre_id=c.source_genre_id,
    )


def _liked_view(item: LikedItem) -> LikedSongView:
    return LikedSongView(
        id=item.item_id,
        title=item.title,
        preview=item.preview_url or "",
        artist=ArtistView(name=item.artist_name),
        album=AlbumView(cover_small=item.cover_art_url, cover_big=item.cover_art_url),
        genre_id=item.genre_id,
        liked_at=item.liked_at.isoformat(),
    )
