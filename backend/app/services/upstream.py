import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any

import requests

try:
    from backend.app.errors import UpstreamError, UpstreamRateLimitedError, UpstreamTimeoutError
except ModuleNotFoundError:
    from app.errors import UpstreamError, UpstreamRateLimitedError, UpstreamTimeoutError

log = logging.getLogger("app.upstream")

USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"


def extract_videos(payload: Any) -> list[Any] | None:
    """Return ``payload["data"]["videos"]`` or None when the feed is missing or malformed."""
    if not isinstance(payload, dict):
        return None
    data = payload.get("data")
    if not isinstance(data, dict):
        return None
    videos = data.get("videos")
    if not isinstance(videos, list):
        return None
    return videos


class TikwmClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = 8.0,
        search_count: int = 20,
        session: requests.Session | None = None,
        max_workers: int = 8,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.search_count = search_count
        self._session = session or requests.Session()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="upstream")

    def _fetch(self, url: str, params: dict[str, Any] | None, in_flight: dict[str, Any]) -> Any:
        response = self._session.get(
            url,
            params=params,
            timeout=self.timeout,
            headers={"User-Agent": USER_AGENT},
            stream=True,
        )
        in_flight["response"] = response
        # Reads the whole body on this worker so the caller's deadline covers it.
        response.content
        return response

    def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """
        GET ``path`` with one deadline for connect, headers and body together.

        ``requests`` only bounds each socket operation, so a body trickling in
        slowly would never time out on its own. The fetch runs on a worker
        thread and the caller stops waiting once ``timeout`` has passed.
        """
        url = f"{self.base_url}{path}"
        log.info("Upstream request url=%s params=%s", url, params)
        in_flight: dict[str, Any] = {}
        future = self._executor.submit(self._fetch, url, params, in_flight)
        try:
            response = future.result(timeout=self.timeout)
        except FutureTimeoutError as exc:
            stalled = in_flight.get("response")
            if stalled is not None:
                stalled.close()
            log.warning("Upstream deadline exceeded url=%s timeout=%s", url, self.timeout)
            raise UpstreamTimeoutError() from exc
        except requests.Timeout as exc:
            raise UpstreamTimeoutError() from exc
        except requests.RequestException as exc:
            raise UpstreamError(str(exc)) from exc

        if response.status_code == 429:
            raise UpstreamRateLimitedError()
        if not 200 <= response.status_code < 300:
            raise UpstreamError(f"Upstream responded with status {response.status_code}")

        try:
            return response.json()
        except ValueError:
            log.warning("Upstream returned a non-JSON body url=%s", url)
            return None

    def search(self, keywords: str, hd: bool = False) -> Any:
        return self._get(
            "/feed/search",
            {
                "keywords": keywords,
                "count": self.search_count,
                "hd": 1 if hd else 0,
            },
        )

    def trending(self) -> Any:
        return self._get("/feed/list")
