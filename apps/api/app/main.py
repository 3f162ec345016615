import logging
import time
from contextlib import asynccontextmanager

from dotenv import find_dotenv, load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic_settings import BaseSettings, SettingsConfigDict

from swipesound_catalog.deezer_client import DeezerClient
from swipesound_core.config import DEEZER_API_URL
from swipesound_core.errors import DomainError
from swipesound_core.types import FeedParams
from swipesound_logging.feed_logger import FeedTelemetryLogger
from .routers import all_routers

log = logging.getLogger(__name__)


class Settings(BaseSettings):
    app_name: str = "SwipeSound Discovery API"
    # credentials
    supabase_url: str | None = None
    supabase_api_key: str | None = None
    # catalog config
    deezer_base_url: str = DEEZER_API_URL
    catalog_timeout_s: float = 5.0
    catalog_max_connections: int = 10
    # telemetry
    telemetry_sample: float = 1.0
    # feed thresholds
    feed_history_window: int = 20
    feed_aversion_min_samples: int = 3
    feed_aversion_skip_ratio: float = 0.8
    feed_fatigue_window: int = 10
    feed_fatigue_min_rejects: int = 7
    feed_genres_per_round: int = 3
    feed_seed_pool: int = 5
    feed_related_limit: int = 20
    feed_chart_limit: int = 40
    # env conifg
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    def feed_params(self) -> FeedParams:
        return FeedParams(
            history_window=self.feed_history_window,
            aversion_min_samples=self.feed_aversion_min_samples,
            aversion_skip_ratio=self.feed_aversion_skip_ratio,
            fatigue_window=self.feed_fatigue_window,
            fatigue_min_rejects=self.feed_fatigue_min_rejects,
            genres_per_round=self.feed_genres_per_round,
            seed_pool=self.feed_seed_pool,
            related_limit=self.feed_related_limit,
            chart_limit=self.feed_chart_limit,
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    load_dotenv(find_dotenv(), override=False)
    startup_t0 = time.perf_counter()

    settings = Settings()
    app.state.settings = settings
    app.state.supabase_url = settings.supabase_url
    app.state.supabase_api_key = settings.supabase_api_key
    app.state.feed_params = settings.feed_params()
    app.state.catalog = DeezerClient(
        base_url=settings.deezer_base_url,
        max_connections=settings.catalog_max_connections,
        timeout=settings.catalog_timeout_s,
    )
    app.state.feed_logger = FeedTelemetryLogger(
        settings.supabase_url,
        settings.supabase_api_key,
        sample=settings.telemetry_sample,
    )
    if not (settings.supabase_url and settings.supabase_api_key):
        log.warning("Supabase credentials missing; interaction store and telemetry disabled")

    log.info("Startup complete in %.2fs", time.perf_counter() - startup_t0)
    try:
        yield
    finally:
        await app.state.catalog.aclose()


app = FastAPI(title="SwipeSound Discovery API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    headers = {"Retry-After": "5"} if exc.retryable else None
    return JSONResponse(
        status_code=exc.status,
        content={"detail": exc.message, "code": exc.code, "retryable": exc.retryable},
        headers=headers,
    )


@app.get("/health")
def health():
    s = app.state.settings
    return {"status": "ok", "service": s.app_name}


@app.get("/")
def read_root():
    return {"status": "ok"}


for r in all_routers:
    app.include_router(r)
