import asyncio
from typing import Any, List

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from swipesound_core.config import DEEZER_API_URL


class CatalogError(Exception):
    """A single catalog call failed (transport, HTTP status or payload shape)."""


class CatalogArtist(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int | None = None
    name: str = "Unknown Artist"


class CatalogAlbum(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int | None = None
    title: str | None = None
    cover_small: str | None = None
    cover_medium: str | None = None
    cover_big: str | None = None


class CatalogTrack(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    title: str
    preview: str = ""
    duration: int | None = None
    rank: int | None = None
    artist: CatalogArtist = Field(default_factory=CatalogArtist)
    album: CatalogAlbum = Field(default_factory=CatalogAlbum)


class DeezerClient:
    def __init__(
        self,
        base_url: str = DEEZER_API_URL,
        max_connections: int = 10,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        limits = httpx.Limits(
            max_connections=max_connections, max_keepalive_connections=max_connections
        )
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            limits=limits,
            headers={"Accept": "application/json"},
            transport=transport,
        )
        self.semaphore = asyncio.Semaphore(max_connections)

    async def get(self, path: str, params: dict[str, Any] | None = None) -> dict:
        async with self.semaphore:
            try:
                response = await self.client.get(path, params=params)
                response.raise_for_status()
                data = response.json()
            except httpx.HTTPStatusError as e:
                raise CatalogError(f"HTTP {e.response.status_code}: {path}") from e
            except httpx.RequestError as e:
                raise CatalogError(f"request failed: {path}: {e!r}") from e
            except ValueError as e:
                raise CatalogError(f"invalid JSON: {path}") from e

        if not isinstance(data, dict):
            raise CatalogError(f"unexpected payload type: {path}")
        # Deezer reports quota/unknown-resource errors with a 200 and an error object
        if "error" in data:
            err = data.get("error") or {}
            msg = err.get("message") if isinstance(err, dict) else err
            raise CatalogError(f"catalog error: {path}: {msg}")
        return data

    async def chart_tracks(self, genre_id: int, limit: int = 40) -> List[CatalogTrack]:
        data = await self.get(f"/chart/{genre_id}/tracks", {"limit": limit})
        return self._parse_tracks(data, f"/chart/{genre_id}/tracks")

    async def related_tracks(self, track_id: int, limit: int = 20) -> List[CatalogTrack]:
        data = await self.get(f"/track/{track_id}/related", {"limit": limit})
        return self._parse_tracks(data, f"/track/{track_id}/related")

    @staticmethod
    def _parse_tracks(data: dict, path: str) -> List[CatalogTrack]:
        rows = data.get("data")
        if not isinstance(rows, list):
            raise CatalogError(f"payload has no data list: {path}")
        tracks = []
        for row in rows:
            try:
                tracks.append(CatalogTrack.model_validate(row))
            except ValidationError:
                # one bad row should not poison the whole chart
                continue
        return tracks

    async def aclose(self):
        await self.client.aclose()
