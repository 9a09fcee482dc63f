# clients/firebase_auth.py
from dataclasses import dataclass
from typing import Optional

import requests

from core.errors import AuthError
from core.logger import get_logger

from . import make_session

logger = get_logger(__name__)

IDENTITY_URL = "https://identitytoolkit.googleapis.com/v1/"


@dataclass(frozen=True)
class AuthSession:
    uid: str
    email: str
    id_token: str


class FirebaseAuthClient:
    """Email/password sign-in and registration via the Identity Toolkit REST API."""

    def __init__(
        self,
        api_key: str,
        session: Optional[requests.Session] = None,
        base_url: str = IDENTITY_URL,
        timeout: float = 30.0,
    ):
        if not api_key:
            raise AuthError("FIREBASE_API_KEY is not configured", code="CONFIGURATION")
        self.api_key = api_key
        self.session = session or make_session()
        self.base_url = base_url.rstrip("/") + "/"
        self.timeout = timeout

    def _post(self, action: str, email: str, password: str) -> AuthSession:
        url = f"{self.base_url}accounts:{action}"
        body = {"email": email, "password": password, "returnSecureToken": True}
        try:
            r = self.session.post(
                url, params={"key": self.api_key}, json=body, timeout=self.timeout
            )
        except requests.RequestException as e:
            raise AuthError(f"{action} request failed: {e}", code="NETWORK") from e

        try:
            payload = r.json()
        except ValueError:
            payload = {}

        if not 200 <= r.status_code < 300:
            code = ""
            if isinstance(payload, dict):
                code = (payload.get("error") or {}).get("message", "")
            raise AuthError(f"{action} failed: {code or r.status_code}", code=code)

        try:
            return AuthSession(
                uid=payload["localId"],
                email=payload.get("email", email),
                id_token=payload["idToken"],
            )
        except (KeyError, TypeError) as e:
            raise AuthError(f"{action} returned an incomplete response", code="MALFORMED") from e

    def sign_in(self, email: str, password: str) -> AuthSession:
        session = self._post("signInWithPassword", email, password)
        logger.info("Signed in as %s", session.email)
        return session

    def register(self, email: str, password: str) -> AuthSession:
        session = self._post("signUp", email, password)
        logger.info("Registered %s", session.email)
        return session
