from __future__ import annotations

from datetime import datetime, timezone
from typing import Sequence

from anyio import to_thread
from postgrest.exceptions import APIError as PostgrestAPIError
from swipesound_core.config import TABLE_INTERACTIONS
from swipesound_core.errors import Conflict, Forbidden
from swipesound_core.types import Decision, DecisionRecord, DisplayMetadata, Identity

from .schemas import DecisionCreate

TABLE = TABLE_INTERACTIONS
MAX_LIMIT = 5000  # safety cap for liked listing
DISPLAY_FIELDS = ("title", "artist_name", "cover_art_url", "preview_url")


def _ensure_ts(value) -> datetime:
    """Normalize Supabase timestamps into tz-aware datetimes."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str) and value.strip():
        raw = value.strip()
        normalized = raw.replace("Z", "+00:00") if raw.endswith("Z") else raw
        try:
            parsed = datetime.fromisoformat(normalized)
        except ValueError:
            parsed = None
        if parsed is not None:
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return datetime.fromtimestamp(0, tz=timezone.utc)


def _row_to_record(row: dict) -> DecisionRecord:
    genre_id = row.get("genre_id")
    return DecisionRecord(
        id=int(row["id"]),
        item_id=int(row["item_id"]),
        decision=Decision.parse(row["decision"]),
        created_at=_ensure_ts(row.get("created_at")),
        genre_id=int(genre_id) if genre_id is not None else None,
        account_id=row.get("account_id"),
        session_token=row.get("session_token"),
        display=DisplayMetadata(**{k: row.get(k) for k in DISPLAY_FIELDS}),
    )


def _map_pgrest(e: PostgrestAPIError) -> Exception:
    code = getattr(e, "code", None) or ""
    # 23505 unique_violation, 42501 insufficient_privilege (RLS), 23503 foreign_key_violation
    if code == "23505":
        return Conflict("duplicate")
    if code == "42501":
        return Forbidden("permission denied")
    if code == "23503":
        return Conflict("foreign key violation")
    return e  # let unexpected ones bubble up to 500


class SupabaseInteractionsRepo:
    def __init__(self, client):
        self.client = client

    # ---------- Async facade ----------
    async def append(self, identity: Identity, event: DecisionCreate) -> DecisionRecord:
        return await to_thread.run_sync(self._append_sync, identity, event)

    async def recent(
        self,
        identity: Identity,
        limit: int,
        *,
        decision: Decision | None = None,
    ) -> Sequence[DecisionRecord]:
        return await to_thread.run_sync(self._recent_sync, identity, limit, decision)

    async def delete_liked(self, identity: Identity, item_id: int) -> int:
        return await to_thread.run_sync(self._delete_liked_sync, identity, item_id)

    async def list_liked(self, identity: Identity) -> Sequence[DecisionRecord]:
        return await to_thread.run_sync(
            self._recent_sync, identity, MAX_LIMIT, Decision.ACCEPT
        )

    # ---------- Private sync impls ----------
    def _append_sync(self, identity: Identity, event: DecisionCreate) -> DecisionRecord:
        key, value = identity.lookup_key()
        payload = {
            "item_id": event.item_id,
            "decision": event.decision.value,
            "genre_id": event.genre_id,
            key: value,
        }
        if event.display is not None:
            payload.update(event.display.model_dump(exclude_none=True))

        try:
            res = (
                self.client.table(TABLE)
                .insert(payload, returning="representation")
                .execute()
            )
        except PostgrestAPIError as e:
            raise _map_pgrest(e)

        rows = res.data or []
        if not rows:
            raise Conflict("decision not recorded")
        return _row_to_record(rows[0])

    def _recent_sync(
        self, identity: Identity, limit: int, decision: Decision | None
    ) -> list[DecisionRecord]:
        key, value = identity.lookup_key()
        q = self.client.table(TABLE).select("*").eq(key, value)
        if decision is not None:
            q = q.eq("decision", decision.value)
        try:
            res = (
                q.order("created_at", desc=True)
                .order("id", desc=True)
                .limit(max(0, min(limit, MAX_LIMIT)))
                .execute()
            )
        except PostgrestAPIError as e:
            raise _map_pgrest(e)
        return [_row_to_record(r) for r in (res.data or [])]

    def _delete_liked_sync(self, identity: Identity, item_id: int) -> int:
        key, value = identity.lookup_key()
        try:
            res = (
                self.client.table(TABLE)
                .delete()
                .eq(key, value)
                .eq("item_id", item_id)
                .eq("decision", Decision.ACCEPT.value)
                .execute()
            )
        except PostgrestAPIError as e:
            raise _map_pgrest(e)
        return len(res.data or [])
