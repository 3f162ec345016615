from typing import Any, cast
from dataclasses import dataclass

from fastapi import HTTPException, Request, status

from swipesound_catalog.deezer_client import DeezerClient
from swipesound_core.types import FeedParams
from swipesound_logging.feed_logger import FeedTelemetryLogger


def _get_state_attr(request: Request, name: str, error_detail: str) -> Any:
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=error_detail,
        )
    return value


def get_catalog(request: Request) -> DeezerClient:
    return cast(
        DeezerClient,
        _get_state_attr(request, "catalog", "Catalog client not initialized"),
    )


def get_feed_params(request: Request) -> FeedParams:
    params = getattr(request.app.state, "feed_params", None)
    return params if params is not None else FeedParams()


def get_catalog_timeout(request: Request) -> float:
    settings = getattr(request.app.state, "settings", None)
    return float(getattr(settings, "catalog_timeout_s", 5.0))


def get_logger(request: Request) -> FeedTelemetryLogger:
    feed_logger = getattr(request.app.state, "feed_logger", None)
    if feed_logger is None:
        # disabled no-op logger
        return FeedTelemetryLogger(None, None)
    return cast(FeedTelemetryLogger, feed_logger)


@dataclass(frozen=True)
class SupabaseCreds:
    url: str
    api_key: str


def get_supabase_creds(request: Request) -> SupabaseCreds:
    return SupabaseCreds(
        url=getattr(request.app.state, "supabase_url", None) or "",
        api_key=getattr(request.app.state, "supabase_api_key", None) or "",
    )
