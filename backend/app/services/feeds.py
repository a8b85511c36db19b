import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

try:
    from backend.app.config import MAX_QUERY_LENGTH, Settings
    from backend.app.errors import QueryValidationError, TrendingFetchError, UpstreamError
    from backend.app.services.library_tree import build_library_tree
    from backend.app.services.normalizer import normalize_videos
    from backend.app.services.response_cache import ResponseCache
    from backend.app.services.upstream import TikwmClient, extract_videos
except ModuleNotFoundError:
    from app.config import MAX_QUERY_LENGTH, Settings
    from app.errors import QueryValidationError, TrendingFetchError, UpstreamError
    from app.services.library_tree import build_library_tree
    from app.services.normalizer import normalize_videos
    from app.services.response_cache import ResponseCache
    from app.services.upstream import TikwmClient, extract_videos

log = logging.getLogger("app.feeds")

TRENDING_CACHE_KEY = "trending"
SEARCH_EXAMPLE = "/api/search?q=spider+man"


@dataclass
class ServiceContext:
    cache: ResponseCache
    client: TikwmClient
    settings: Settings


def search_cache_key(query: str, quality: str) -> str:
    return f"search:{query}:{quality}"


def query_length(query: str) -> int:
    # Counted in UTF-16 code units, so characters outside the BMP (emoji) count as 2.
    return len(query.encode("utf-16-le")) // 2


def validate_query(query: str | None) -> str:
    if not query:
        raise QueryValidationError("Missing query parameter: q", example=SEARCH_EXAMPLE)
    if query_length(query) > MAX_QUERY_LENGTH:
        raise QueryValidationError(f"Query too long (max {MAX_QUERY_LENGTH} characters)")
    return query


def search_videos(cache: ResponseCache, client: TikwmClient, query: str | None, quality: str = "low") -> dict[str, Any]:
    query = validate_query(query)
    cache_key = search_cache_key(query, quality)
    cached = cache.get(cache_key)
    if cached is not None:
        log.debug("Cache hit key=%s", cache_key)
        return {**cached, "cached": True}

    log.debug("Cache miss key=%s", cache_key)
    payload = client.search(query, hd=quality == "high")
    raw_videos = extract_videos(payload)
    if raw_videos is None:
        return {"videos": [], "count": 0, "query": query, "message": "No videos found"}

    videos = normalize_videos(raw_videos)
    result = {"videos": videos, "count": len(videos), "query": query, "cached": False}
    cache.set(cache_key, result)
    return result


def trending_videos(cache: ResponseCache, client: TikwmClient) -> dict[str, Any]:
    cached = cache.get(TRENDING_CACHE_KEY)
    if cached is not None:
        log.debug("Cache hit key=%s", TRENDING_CACHE_KEY)
        return {**cached, "cached": True}

    try:
        payload = client.trending()
    except UpstreamError as exc:
        log.warning("Trending fetch failed: %s", exc)
        raise TrendingFetchError(str(exc)) from exc

    raw_videos = extract_videos(payload)
    if raw_videos is None:
        return {"videos": [], "count": 0, "message": "No trending videos found"}

    videos = normalize_videos(raw_videos)
    result = {"videos": videos, "count": len(videos), "cached": False}
    cache.set(TRENDING_CACHE_KEY, result)
    return result


def list_library(library_dir: str | Path, base_url: str) -> dict[str, Any]:
    return {"baseUrl": base_url, "items": build_library_tree(library_dir, base_url)}
