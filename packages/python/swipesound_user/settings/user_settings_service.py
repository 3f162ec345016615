from __future__ import annotations
from swipesound_core.types import Identity
from .user_settings_repo import SupabaseUserSettingsRepo
from .schemas import UserGenrePreferences


class UserSettingsService:
    def __init__(
        self,
        repo: SupabaseUserSettingsRepo,
    ):
        self.repo = repo

    async def preference_set(self, identity: Identity) -> set[int]:
        # session viewers have no persisted preferences
        if not identity.is_account:
            return set()
        prefs = await self.repo.get_genre_preferences(identity.account_id)
        return set(prefs.genre_ids)

    async def get_genre_preferences(self, account_id: str) -> UserGenrePreferences:
        return await self.repo.get_genre_preferences(account_id)

    # Replace the preferred genre set
    async def upsert_genre_preferences(
        self,
        account_id: str,
        *,
        genre_ids: list[int],
    ) -> UserGenrePreferences:
        deduped = list(dict.fromkeys(genre_ids))
        return await self.repo.upsert_genre_preferences(account_id, genre_ids=deduped)
