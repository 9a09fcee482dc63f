# clients/firestore.py
from typing import Any, Dict, List, Optional, Tuple

import requests

from core.errors import StoreError
from core.logger import get_logger

from . import make_session

logger = get_logger(__name__)

FIRESTORE_URL = "https://firestore.googleapis.com/v1/"
PAGE_SIZE = 300


def encode_value(value: Any) -> Dict[str, Any]:
    # bool first: it is an int subclass
    if value is None:
        return {"nullValue": None}
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    return {"stringValue": str(value)}


def decode_value(value: Dict[str, Any]) -> Any:
    if "integerValue" in value:
        return int(value["integerValue"])
    if "stringValue" in value:
        return value["stringValue"]
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "booleanValue" in value:
        return bool(value["booleanValue"])
    if "timestampValue" in value:
        return value["timestampValue"]
    return None


def encode_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {"fields": {k: encode_value(v) for k, v in fields.items()}}


def decode_fields(document: Dict[str, Any]) -> Dict[str, Any]:
    return {k: decode_value(v) for k, v in (document.get("fields") or {}).items()}


class FirestoreCollection:
    """
    One Firestore collection accessed through the REST API. Requests carry
    the signed-in user's ID token when there is one, otherwise the API key.
    """

    def __init__(
        self,
        project_id: str,
        collection: str = "games",
        id_token: Optional[str] = None,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
        base_url: str = FIRESTORE_URL,
        timeout: float = 30.0,
    ):
        if not project_id:
            raise StoreError("FIREBASE_PROJECT_ID is not configured")
        self.collection = collection
        self.session = session or make_session()
        self.timeout = timeout
        self.id_token = id_token
        self.api_key = api_key
        self.url = (
            f"{base_url.rstrip('/')}/projects/{project_id}"
            f"/databases/(default)/documents/{collection}"
        )

    def _headers(self) -> Dict[str, str]:
        if self.id_token:
            return {"Authorization": f"Bearer {self.id_token}"}
        return {}

    def _params(self, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        params = dict(extra or {})
        if self.api_key:
            params["key"] = self.api_key
        return params

    def _call(self, method: str, url: str, what: str, **kwargs) -> Dict[str, Any]:
        try:
            r = self.session.request(
                method, url, headers=self._headers(), timeout=self.timeout, **kwargs
            )
        except requests.RequestException as e:
            raise StoreError(f"{what} failed: {e}") from e

        if not 200 <= r.status_code < 300:
            detail = ""
            try:
                detail = r.json().get("error", {}).get("message", "")
            except (ValueError, AttributeError):
                pass
            raise StoreError(f"{what} failed with HTTP {r.status_code} {detail}".strip())

        if not r.content:
            return {}
        try:
            body = r.json()
        except ValueError as e:
            raise StoreError(f"{what} returned a non-JSON body") from e
        return body if isinstance(body, dict) else {}

    def add(self, fields: Dict[str, Any]) -> str:
        body = self._call(
            "POST", self.url, f"add to {self.collection}",
            params=self._params(), json=encode_fields(fields),
        )
        name = body.get("name") or ""
        if not name:
            raise StoreError(f"add to {self.collection} returned no document name")
        doc_id = name.rsplit("/", 1)[-1]
        logger.debug("Added %s/%s", self.collection, doc_id)
        return doc_id

    def list(self) -> List[Tuple[str, Dict[str, Any]]]:
        out: List[Tuple[str, Dict[str, Any]]] = []
        page_token = None
        while True:
            extra: Dict[str, Any] = {"pageSize": PAGE_SIZE}
            if page_token:
                extra["pageToken"] = page_token
            body = self._call(
                "GET", self.url, f"list {self.collection}", params=self._params(extra)
            )
            for doc in body.get("documents") or []:
                name = doc.get("name") or ""
                if not name:
                    continue
                out.append((name.rsplit("/", 1)[-1], decode_fields(doc)))
            page_token = body.get("nextPageToken")
            if not page_token:
                break
        return out

    def delete(self, doc_id: str) -> None:
        self._call(
            "DELETE", f"{self.url}/{doc_id}",
            f"delete {self.collection}/{doc_id}", params=self._params(),
        )
