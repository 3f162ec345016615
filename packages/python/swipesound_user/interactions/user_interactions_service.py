from __future__ import annotations

import logging
from typing import Any

from swipesound_core.errors import InvalidDecision, InvalidIdentity
from swipesound_core.types import Decision, DecisionRecord, DisplayMetadata, Identity

from .schemas import DecisionCreate, LikedItem
from .user_interactions_repo import SupabaseInteractionsRepo

log = logging.getLogger(__name__)


class InteractionsService:
    def __init__(self, repo: SupabaseInteractionsRepo):
        self.repo = repo

    async def record_decision(
        self,
        identity: Identity,
        item_id: int,
        decision: Decision | str,
        *,
        genre_id: int | None = None,
        display: DisplayMetadata | None = None,
    ) -> DecisionRecord:
        self._require_identity(identity)
        event = self._normalize_event(item_id, decision, genre_id, display)
        return await self.repo.append(identity, event)

    async def remove_liked_item(self, identity: Identity, item_id: int) -> None:
        self._require_identity(identity)
        deleted = await self.repo.delete_liked(identity, item_id)
        if not deleted:
            log.debug("No liked record for item %s; nothing to remove", item_id)

    async def list_liked_items(self, identity: Identity) -> list[LikedItem]:
        """
        Newest-first liked items, one per item id. Legacy records without
        a display snapshot are skipped, so an older complete record can
        still represent the item.
        """
        if identity.is_empty:
            return []
        records = await self.repo.list_liked(identity)
        items: dict[int, LikedItem] = {}
        for r in records:
            if not r.display.is_complete or r.item_id in items:
                continue
            items[r.item_id] = LikedItem(
                item_id=r.item_id,
                title=r.display.title or "",
                artist_name=r.display.artist_name or "Unknown Artist",
                cover_art_url=r.display.cover_art_url,
                preview_url=r.display.preview_url,
                genre_id=r.genre_id,
                liked_at=r.created_at,
            )
        return list(items.values())

    def _require_identity(self, identity: Identity | None) -> None:
        if identity is None or identity.is_empty:
            raise InvalidIdentity("either an account or a session id is required")

    def _normalize_event(
        self,
        item_id: int,
        decision: Any,
        genre_id: int | None,
        display: DisplayMetadata | None,
    ) -> DecisionCreate:
        # Clamp/cleanup; central place for invariants.
        if not item_id or item_id < 0:
            raise InvalidDecision("item_id must be a positive integer")
        try:
            parsed = Decision.parse(decision)
        except ValueError as e:
            raise InvalidDecision(str(e)) from e

        if display is not None:
            cleaned = {
                k: (v.strip() or None) if isinstance(v, str) else v
                for k, v in display.model_dump().items()
            }
            display = DisplayMetadata(**cleaned)

        return DecisionCreate(
            item_id=int(item_id),
            decision=parsed,
            genre_id=genre_id,
            display=display,
        )
