# clients/steam_catalog.py
from typing import List, Optional
from urllib.parse import urljoin

import requests

from core.config import STEAM_API_URL
from core.errors import NetworkError
from core.logger import get_logger
from core.models import CatalogEntry

from . import make_session

logger = get_logger(__name__)

APP_LIST_PATH = "ISteamApps/GetAppList/v2/"


class SteamCatalogClient:
    """
    Fetches the full Steam app list. One request, no paging and no retry:
    any failure is reported as NetworkError so a run never works from a
    partial catalog.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        base_url: str = STEAM_API_URL,
        timeout: float = 30.0,
    ):
        self.session = session or make_session()
        self.url = urljoin(base_url, APP_LIST_PATH)
        self.timeout = timeout

    def fetch_all(self) -> List[CatalogEntry]:
        logger.info("Fetching Steam app list from %s", self.url)
        try:
            r = self.session.get(self.url, timeout=self.timeout)
        except requests.RequestException as e:
            raise NetworkError(f"App list request failed: {e}") from e

        if not 200 <= r.status_code < 300:
            raise NetworkError(
                f"App list request returned HTTP {r.status_code}",
                status_code=r.status_code,
            )

        try:
            payload = r.json()
            apps = payload["applist"]["apps"]
        except (ValueError, KeyError, TypeError) as e:
            raise NetworkError(f"Malformed app list response: {e}") from e
        if not isinstance(apps, list):
            raise NetworkError("Malformed app list response: 'apps' is not a list")

        entries: List[CatalogEntry] = []
        for app in apps:
            if not isinstance(app, dict):
                continue
            try:
                appid = int(app.get("appid"))
            except (TypeError, ValueError):
                continue
            entries.append(CatalogEntry(appid=appid, name=str(app.get("name") or "")))

        logger.info("Steam app list: %d entries", len(entries))
        return entries
