# tests/conftest.py
"""
Shared fakes. Nothing in the suite talks to the network: HTTP clients get a
FakeSession whose responses come from a handler function.
"""

import json
import threading

import pytest

from core.errors import NetworkError
from core.models import CatalogEntry, GameRecord


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        if text is not None:
            self.content = text.encode()
        elif payload is None:
            self.content = b""
        else:
            self.content = json.dumps(payload).encode()

    def json(self):
        if self._payload is None:
            return json.loads(self.content.decode() or "")
        return self._payload


class FakeSession:
    def __init__(self, handler):
        self.handler = handler
        self.calls = []
        self._lock = threading.Lock()

    def request(self, method, url, params=None, json=None, headers=None, timeout=None):
        with self._lock:
            self.calls.append(
                {"method": method, "url": url, "params": params, "json": json, "headers": headers}
            )
        return self.handler(method, url, params or {}, json)

    def get(self, url, params=None, timeout=None, headers=None):
        return self.request("GET", url, params=params, headers=headers, timeout=timeout)

    def post(self, url, params=None, json=None, timeout=None, headers=None):
        return self.request("POST", url, params=params, json=json, headers=headers, timeout=timeout)


class FakeCatalog:
    def __init__(self, entries=None, error=None):
        self.entries = entries or []
        self.error = error
        self.calls = 0

    def fetch_all(self):
        self.calls += 1
        if self.error:
            raise self.error
        return [CatalogEntry(e.appid, e.name, e.header_image) for e in self.entries]


class FakeDetails:
    """Resolves ids from a dict; ids missing from it resolve to None."""

    def __init__(self, records=None, raise_for=()):
        self.records = records or {}
        self.raise_for = set(raise_for)
        self.requested = []
        self._lock = threading.Lock()

    def fetch_one(self, appid):
        with self._lock:
            self.requested.append(appid)
        if appid in self.raise_for:
            raise RuntimeError(f"boom {appid}")
        return self.records.get(appid)


@pytest.fixture
def tropico_catalog():
    return FakeCatalog([CatalogEntry(1, "Tropico 6"), CatalogEntry(2, "Chess")])


@pytest.fixture
def tropico_record():
    return GameRecord(1, "Tropico 6", "img1.png")


@pytest.fixture
def failing_catalog():
    return FakeCatalog(error=NetworkError("HTTP 503", status_code=503))
