from __future__ import annotations

from pydantic import BaseModel, Field, field_validator
from swipesound_core.config import GENRE_TAXONOMY


class SwipeRequest(BaseModel):
    song_id: int = Field(..., gt=0)
    type: str = Field(..., examples=["LIKE", "SKIP"])
    genre_id: int | None = None
    title: str | None = None
    artist_name: str | None = None
    album_art: str | None = None
    preview_url: str | None = None


class ArtistView(BaseModel):
    name: str


class AlbumView(BaseModel):
    cover_small: str | None = None
    cover_big: str | None = None


class SongView(BaseModel):
    id: int
    title: str
    preview: str = ""
    artist: ArtistView
    album: AlbumView
    genre_id: int | None = None


class LikedSongView(SongView):
    liked_at: str


class GenreView(BaseModel):
    id: int
    name: str


class SuccessOut(BaseModel):
    success: bool = True


class UpdateGenresRequest(BaseModel):
    genre_ids: list[int] = Field(default_factory=list, max_length=len(GENRE_TAXONOMY))

    @field_validator("genre_ids")
    def validate_genre_ids(cls, v):
        unknown = sorted({g for g in v if g not in GENRE_TAXONOMY})
        if unknown:
            raise ValueError(f"Unknown genre ids: {unknown}")
        return v
