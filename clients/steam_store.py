# clients/steam_store.py
from typing import Optional
from urllib.parse import urljoin

import requests
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from core.config import STEAM_STORE_URL
from core.logger import get_logger
from core.models import GameRecord

from . import make_session

logger = get_logger(__name__)

APP_DETAILS_PATH = "api/appdetails/"


class TransientFetchError(Exception):
    """Rate limiting, a 5xx or a dropped connection; worth another attempt."""


class SteamStoreClient:
    """
    Resolves display name and cover image for a single app id through the
    store's appdetails endpoint.

    fetch_one never raises for remote problems: an unusable answer is None,
    which callers treat as "skip this game".
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        base_url: str = STEAM_STORE_URL,
        timeout: float = 30.0,
        max_attempts: int = 3,
        language: Optional[str] = None,
        country: Optional[str] = None,
        backoff_initial: float = 1.0,
        backoff_max: float = 20.0,
    ):
        self.session = session or make_session()
        self.url = urljoin(base_url, APP_DETAILS_PATH)
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)
        self.language = language
        self.country = country
        self.backoff_initial = backoff_initial
        self.backoff_max = backoff_max

    def _request(self, params: dict) -> requests.Response:
        try:
            r = self.session.get(self.url, params=params, timeout=self.timeout)
        except (requests.ConnectionError, requests.Timeout) as e:
            raise TransientFetchError(str(e)) from e
        if r.status_code == 429 or r.status_code >= 500:
            raise TransientFetchError(f"HTTP {r.status_code}")
        return r

    def fetch_one(self, appid: int) -> Optional[GameRecord]:
        key = str(appid)
        params = {"appids": key}
        if self.language:
            params["l"] = self.language
        if self.country:
            params["cc"] = self.country

        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential_jitter(
                initial=self.backoff_initial, max=self.backoff_max
            ),
            retry=retry_if_exception_type(TransientFetchError),
            reraise=True,
        )
        try:
            r = retrying(self._request, params)
        except TransientFetchError as e:
            logger.warning(
                "appdetails %s failed after %d attempt(s): %s",
                key, self.max_attempts, e,
            )
            return None
        except requests.RequestException as e:
            logger.warning("appdetails %s request error: %s", key, e)
            return None

        if not 200 <= r.status_code < 300:
            logger.debug("appdetails %s returned HTTP %d", key, r.status_code)
            return None

        try:
            payload = r.json()
        except ValueError:
            logger.debug("appdetails %s returned a non-JSON body", key)
            return None

        entry = payload.get(key) if isinstance(payload, dict) else None
        if not isinstance(entry, dict) or not entry.get("success"):
            logger.debug("appdetails has no successful entry for %s", key)
            return None

        data = entry.get("data")
        if not isinstance(data, dict):
            return None

        name = str(data.get("name") or "").strip()
        image = str(data.get("header_image") or "").strip()
        if not name or not image:
            logger.debug("appdetails %s lacks name or header_image", key)
            return None

        return GameRecord(appid=int(appid), name=name, header_image=image)
