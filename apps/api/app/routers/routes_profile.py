from fastapi import APIRouter, Depends
from swipesound_user.settings.schemas import UserGenrePreferences
from swipesound_user.settings.user_settings_repo import SupabaseUserSettingsRepo
from swipesound_user.settings.user_settings_service import UserSettingsService

from app.schemas import UpdateGenresRequest
from app.deps.supabase_client import (
    get_supabase_client,
    require_account_id,
)

router = APIRouter(prefix="/profile", tags=["profile"])


def get_service(
    sb=Depends(get_supabase_client),
) -> UserSettingsService:
    repo = SupabaseUserSettingsRepo(sb)
    return UserSettingsService(repo)


@router.get("/genres", response_model=UserGenrePreferences)
async def get_genres(
    account_id: str = Depends(require_account_id),
    service: UserSettingsService = Depends(get_service),
):
    return await service.get_genre_preferences(account_id)


# Replace preferred genres in user_preferences
@router.put("/genres", response_model=UserGenrePreferences)
async def update_genres(
    req: UpdateGenresRequest,
    account_id: str = Depends(require_account_id),
    service: UserSettingsService = Depends(get_service),
):
    return await service.upsert_genre_preferences(account_id, genre_ids=req.genre_ids)
