import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

ROOT_DIR = Path(__file__).resolve().parents[2]

CACHE_TTL_SECONDS = 5 * 60  # 5 minutes
MAX_QUERY_LENGTH = 100

DEFAULT_TIKWM_API_BASE = "https://www.tikwm.com/api"
DEFAULT_LIBRARY_DIR = ROOT_DIR / "public" / "comics"
DEFAULT_LIBRARY_BASE_URL = "/comics"
DEFAULT_CORS_ORIGIN = "http://localhost:5173"


def parse_cors_origins(raw: str | None) -> tuple[list[str], bool]:
    raw = (raw or "").strip()
    if not raw:
        return [DEFAULT_CORS_ORIGIN], True
    if raw == "*":
        return ["*"], False
    origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
    if not origins:
        return [DEFAULT_CORS_ORIGIN], True
    return origins, True


@dataclass(frozen=True)
class Settings:
    tikwm_api_base: str = DEFAULT_TIKWM_API_BASE
    upstream_timeout_seconds: float = 8.0
    search_result_count: int = 20
    library_dir: Path = DEFAULT_LIBRARY_DIR
    library_base_url: str = DEFAULT_LIBRARY_BASE_URL
    app_env: str = "production"
    cors_origins: list[str] = field(default_factory=lambda: [DEFAULT_CORS_ORIGIN])
    cors_credentials: bool = True
    log_level: str = "info"

    @property
    def is_development(self) -> bool:
        return self.app_env.lower() == "development"


def load_settings() -> Settings:
    cors_origins, cors_credentials = parse_cors_origins(os.getenv("CORS_ALLOWED_ORIGINS"))
    library_dir = os.getenv("LIBRARY_DIR")
    return Settings(
        tikwm_api_base=(os.getenv("TIKWM_API_BASE") or DEFAULT_TIKWM_API_BASE).rstrip("/"),
        upstream_timeout_seconds=float(os.getenv("UPSTREAM_TIMEOUT_SECONDS") or 8),
        search_result_count=int(os.getenv("SEARCH_RESULT_COUNT") or 20),
        library_dir=Path(library_dir) if library_dir else DEFAULT_LIBRARY_DIR,
        library_base_url=(os.getenv("LIBRARY_BASE_URL") or DEFAULT_LIBRARY_BASE_URL).rstrip("/"),
        app_env=os.getenv("APP_ENV") or "production",
        cors_origins=cors_origins,
        cors_credentials=cors_credentials,
        log_level=os.getenv("LOG_LEVEL") or "info",
    )


def configure_logging(level: str = "info") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
