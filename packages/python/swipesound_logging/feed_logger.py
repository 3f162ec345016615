from __future__ import annotations
import hashlib
import hmac
import logging
import os
from typing import Any, Iterable

import httpx

from swipesound_core.types import Identity

log = logging.getLogger(__name__)


class FeedTelemetryLogger:
    """
    Best-effort telemetry for the discovery feed, written to Supabase REST.

    - feed_queries: one row per composed feed
    - feed_decisions: one row per recorded swipe

    Never raises; a disabled logger (no credentials or sample == 0) is a no-op.
    """

    def __init__(
        self,
        supabase_url: str | None,
        api_key: str | None,
        *,
        sample: float = 1.0,
        timeout_s: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.supabase_url = (supabase_url or "").rstrip("/")
        self.api_key = api_key or ""
        self.sample = float(max(0.0, min(1.0, sample)))
        self.timeout_s = timeout_s
        self._transport = transport

    def _enabled(self) -> bool:
        return bool(self.supabase_url and self.api_key and self.sample > 0)

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Prefer": "return=minimal",
        }

    async def _post(self, path: str, payload: list[dict[str, Any]]) -> None:
        if not self._enabled() or not payload:
            return
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                r = await client.post(
                    f"{self.supabase_url}/rest/v1/{path}",
                    headers=self._headers(),
                    json=payload,
                    timeout=self.timeout_s,
                )
            if r.status_code not in (200, 201, 204):
                log.warning(
                    "feed telemetry POST %s failed %s: %s",
                    path,
                    r.status_code,
                    r.text[:300],
                )
        except Exception as e:
            log.warning("feed telemetry POST %s error: %r", path, e)

    @staticmethod
    def hmac_hash(value: str, secret: str) -> str:
        return hmac.new(
            secret.encode("utf-8"), value.encode("utf-8"), hashlib.sha256
        ).hexdigest()

    # ---------- Public APIs ----------
    async def log_feed_composed(
        self,
        *,
        identity: Identity,
        genres: Iterable[int],
        fatigued: bool,
        aversion: Iterable[int],
        n_candidates: int,
        n_expansion: int = 0,
        seed_item_id: int | None = None,
        used_fallback: bool = False,
        failed_sources: Iterable[str] = (),
    ) -> None:
        """Insert one row into feed_queries."""
        if not self._enabled():
            return
        row = {
            "viewer_hash": hash_identity(identity),
            "is_account": identity.is_account,
            "genres": list(genres),
            "fatigued": fatigued,
            "aversion": sorted(aversion),
            "seed_item_id": seed_item_id,
            "used_fallback": used_fallback,
            "failed_sources": list(failed_sources),
            "n_candidates": n_candidates,
            "n_expansion": n_expansion,
        }
        await self._post("feed_queries", [row])

    async def log_decision(
        self,
        *,
        identity: Identity,
        item_id: int,
        decision: str,
        genre_id: int | None,
    ) -> None:
        """Insert one row into feed_decisions."""
        if not self._enabled():
            return
        row = {
            "viewer_hash": hash_identity(identity),
            "item_id": item_id,
            "decision": decision,
            "genre_id": genre_id,
        }
        await self._post("feed_decisions", [row])


# ---------- Convenience helpers ----------
def hash_identity(identity: Identity) -> str | None:
    if identity.is_empty:
        return None
    _, value = identity.lookup_key()
    secret = os.getenv("FEED_HASH_SECRET") or os.getenv("SUPABASE_API_KEY") or "dev"
    return FeedTelemetryLogger.hmac_hash(value, secret)
