from __future__ import annotations
from datetime import datetime

from pydantic import BaseModel
from swipesound_core.types import Decision, DisplayMetadata


class DecisionCreate(BaseModel):
    item_id: int
    decision: Decision
    genre_id: int | None = None
    display: DisplayMetadata | None = None


class LikedItem(BaseModel):
    item_id: int
    title: str
    artist_name: str
    cover_art_url: str | None = None
    preview_url: str | None = None
    genre_id: int | None = None
    liked_at: datetime
