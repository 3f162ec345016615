from .routes_music import router as music_router
from .routes_profile import router as profile_router

all_routers = [
    music_router,
    profile_router,
]
