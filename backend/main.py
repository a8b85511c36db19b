import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

try:
    from backend.app.config import configure_logging, load_settings
    from backend.app.errors import FeedError, TrendingFetchError, UpstreamError
    from backend.app.services.feeds import ServiceContext, list_library, search_videos, trending_videos
    from backend.app.services.library_tree import ensure_library_dir
    from backend.app.services.response_cache import ResponseCache
    from backend.app.services.upstream import TikwmClient
except ModuleNotFoundError:
    from app.config import configure_logging, load_settings
    from app.errors import FeedError, TrendingFetchError, UpstreamError
    from app.services.feeds import ServiceContext, list_library, search_videos, trending_videos
    from app.services.library_tree import ensure_library_dir
    from app.services.response_cache import ResponseCache
    from app.services.upstream import TikwmClient

log = logging.getLogger("app.main")


# ---------------------------
# App setup
# ---------------------------

settings = load_settings()
configure_logging(settings.log_level)


def build_context() -> ServiceContext:
    return ServiceContext(
        cache=ResponseCache(),
        client=TikwmClient(
            settings.tikwm_api_base,
            timeout=settings.upstream_timeout_seconds,
            search_count=settings.search_result_count,
        ),
        settings=settings,
    )


app = FastAPI(title="Video feed cache and library catalog")
app.state.context = build_context()

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.mount(
    settings.library_base_url,
    StaticFiles(directory=settings.library_dir, check_dir=False),
    name="library",
)


def get_context(request: Request) -> ServiceContext:
    return request.app.state.context


@app.exception_handler(FeedError)
async def feed_error_handler(request: Request, exc: FeedError):
    content = exc.to_content()
    development = request.app.state.context.settings.is_development
    if exc.status_code == 500 and "message" in content and not development:
        content["message"] = "Internal server error"
    return JSONResponse(status_code=exc.status_code, content=content)


@app.on_event("startup")
def on_startup_prepare_library():
    ensure_library_dir(settings.library_dir)
    log.info("Library root ready path=%s url=%s", settings.library_dir, settings.library_base_url)


# ---------------------------
# Routes
# ---------------------------

@app.get("/api/health")
def health(context: ServiceContext = Depends(get_context)):
    return {
        "status": 200,
        "cache_size": len(context.cache),
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "message": "OK",
        "comics_dir": context.settings.library_base_url,
    }


@app.get("/api/search")
def search(
    context: ServiceContext = Depends(get_context),
    q: str | None = None,
    quality: str = "low",  # low | high
) -> dict[str, Any]:
    try:
        return search_videos(context.cache, context.client, q, quality)
    except FeedError:
        raise
    except Exception as exc:
        log.exception("Search failed q=%s", q)
        raise UpstreamError(str(exc)) from exc


@app.get("/api/trending")
def trending(context: ServiceContext = Depends(get_context)) -> dict[str, Any]:
    try:
        return trending_videos(context.cache, context.client)
    except FeedError:
        raise
    except Exception as exc:
        log.exception("Trending failed")
        raise TrendingFetchError(str(exc)) from exc


@app.get("/api/library")
def library(context: ServiceContext = Depends(get_context)) -> dict[str, Any]:
    return list_library(context.settings.library_dir, context.settings.library_base_url)
