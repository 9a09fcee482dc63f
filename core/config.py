# core/config.py
import os
from dataclasses import dataclass

from .logger import get_logger

logger = get_logger(__name__)

STEAM_API_URL = "https://api.steampowered.com/"
STEAM_STORE_URL = "https://store.steampowered.com/"
DEFAULT_USER_AGENT = "steam-wishlist/0.1 (+https://store.steampowered.com)"


def _env_int(key: str, default: int, minimum: int = 0) -> int:
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid integer for %s=%r; using %d.", key, raw, default)
        return default
    return max(minimum, value)


def _env_float(key: str, default: float) -> float:
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Invalid number for %s=%r; using %s.", key, raw, default)
        return default


@dataclass
class Settings:
    title_filter: str = "tropico 6"
    steam_api_url: str = STEAM_API_URL
    steam_store_url: str = STEAM_STORE_URL
    user_agent: str = DEFAULT_USER_AGENT
    http_timeout: float = 30.0
    detail_max_attempts: int = 3
    # 0 means one worker per matching entry
    detail_max_workers: int = 0
    store_language: str = ""
    store_country: str = ""
    store_backend: str = "firestore"
    firebase_project_id: str = ""
    firebase_api_key: str = ""
    wishlist_collection: str = "games"
    sqlite_path: str = os.path.expanduser("~/.steam_wishlist/wishlist.sqlite3")
    export_theme: str = "dark"


def load_settings() -> Settings:
    """Read settings from the environment; unset keys keep their defaults."""
    defaults = Settings()
    backend = os.getenv("STORE_BACKEND", defaults.store_backend).strip().lower()
    if backend not in ("firestore", "sqlite"):
        logger.warning("Unknown STORE_BACKEND %r; using sqlite.", backend)
        backend = "sqlite"
    theme = os.getenv("EXPORT_THEME", defaults.export_theme).strip().lower()
    if theme not in ("light", "dark"):
        theme = "dark"

    return Settings(
        title_filter=os.getenv("TITLE_FILTER", defaults.title_filter),
        steam_api_url=os.getenv("STEAM_API_URL", defaults.steam_api_url),
        steam_store_url=os.getenv("STEAM_STORE_URL", defaults.steam_store_url),
        user_agent=os.getenv("HTTP_USER_AGENT", defaults.user_agent),
        http_timeout=_env_float("HTTP_TIMEOUT", defaults.http_timeout),
        detail_max_attempts=_env_int(
            "DETAIL_MAX_ATTEMPTS", defaults.detail_max_attempts, minimum=1
        ),
        detail_max_workers=_env_int("DETAIL_MAX_WORKERS", defaults.detail_max_workers),
        store_language=os.getenv("STORE_LANGUAGE", "").strip(),
        store_country=os.getenv("STORE_COUNTRY", "").strip(),
        store_backend=backend,
        firebase_project_id=os.getenv("FIREBASE_PROJECT_ID", "").strip(),
        firebase_api_key=os.getenv("FIREBASE_API_KEY", "").strip(),
        wishlist_collection=os.getenv(
            "WISHLIST_COLLECTION", defaults.wishlist_collection
        ).strip() or defaults.wishlist_collection,
        sqlite_path=os.getenv("SQLITE_PATH", defaults.sqlite_path),
        export_theme=theme,
    )
