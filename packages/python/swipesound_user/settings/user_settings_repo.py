from __future__ import annotations
from anyio import to_thread
from swipesound_core.config import TABLE_PREFS
from .schemas import UserGenrePreferences


class SupabaseUserSettingsRepo:
    def __init__(self, client):
        self.client = client

    # ---------- Async facade ----------
    async def get_genre_preferences(self, account_id: str) -> UserGenrePreferences:
        return await to_thread.run_sync(self._get_genre_preferences_sync, account_id)

    async def upsert_genre_preferences(
        self,
        account_id: str,
        *,
        genre_ids: list[int],
    ) -> UserGenrePreferences:
        return await to_thread.run_sync(
            self._upsert_genre_preferences_sync, account_id, genre_ids
        )

    # ---------- Private sync impls ----------
    def _get_genre_preferences_sync(self, account_id: str) -> UserGenrePreferences:
        res = (
            self.client.table(TABLE_PREFS)
            .select("genre_ids")
            .eq("account_id", account_id)
            .limit(1)
            .execute()
        )
        rows = getattr(res, "data", None) or []
        genre_ids = (rows[0].get("genre_ids") if rows else None) or []
        return UserGenrePreferences(
            account_id=account_id, genre_ids=[int(g) for g in genre_ids]
        )

    def _upsert_genre_preferences_sync(
        self,
        account_id: str,
        genre_ids: list[int],
    ) -> UserGenrePreferences:
        payload = {
            "account_id": account_id,
            "genre_ids": genre_ids,
        }
        self.client.table(TABLE_PREFS).upsert(payload, on_conflict="account_id").execute()
        return UserGenrePreferences(account_id=account_id, genre_ids=genre_ids)
