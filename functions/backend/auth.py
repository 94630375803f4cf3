"""
Authentication collaborator: resolves bearer tokens into explicit sessions.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Dict, Optional, Protocol

import requests

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10  # seconds


class AuthServiceError(RuntimeError):
    """The auth backend could not be reached."""


@dataclass(frozen=True)
class Session:
    user_id: str
    email: str
    name: str
    access_token: str


class AuthClient(Protocol):
    def get_session(self, token: str) -> Optional[Session]:
        ...


def parse_bearer(header: Optional[str]) -> Optional[str]:
    """
    Extracts the token from an Authorization header. Browsers without a
    signed-in user send the literal "Bearer null", which counts as absent.
    """
    if not header:
        return None
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    if not token or token in ("null", "undefined"):
        return None
    return token


def _display_name(email: str, metadata: dict) -> str:
    name = metadata.get("full_name") or metadata.get("name")
    if name:
        return name
    return email.split("@", 1)[0] if email else "Guest"


class SupabaseAuthClient:
    """Verifies access tokens against the Supabase auth REST API."""

    def __init__(self, url: str, anon_key: str):
        self.url = url.rstrip("/")
        self.anon_key = anon_key

    def get_session(self, token: str) -> Optional[Session]:
        try:
            response = requests.get(
                f"{self.url}/auth/v1/user",
                headers={
                    "apikey": self.anon_key,
                    "Authorization": f"Bearer {token}",
                },
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            raise AuthServiceError(str(e)) from e

        if not response.ok:
            logger.info("Token rejected by auth service (%s)", response.status_code)
            return None
        try:
            payload = response.json()
        except ValueError:
            logger.warning("Auth service returned a non-JSON body")
            return None
        user_id = payload.get("id") if isinstance(payload, dict) else None
        if not user_id:
            logger.warning("Auth service response has no user id")
            return None
        email = payload.get("email") or ""
        return Session(
            user_id=user_id,
            email=email,
            name=_display_name(email, payload.get("user_metadata") or {}),
            access_token=token,
        )


class InMemoryAuthClient:
    """Token registry for development and tests."""

    def __init__(self):
        self.sessions: Dict[str, Session] = {}

    def sign_in(self, email: str, name: str, user_id: str | None = None) -> Session:
        token = uuid.uuid4().hex
        session = Session(
            user_id=user_id or uuid.uuid4().hex,
            email=email,
            name=name,
            access_token=token,
        )
        self.sessions[token] = session
        return session

    def sign_out(self, token: str) -> None:
        self.sessions.pop(token, None)

    def get_session(self, token: str) -> Optional[Session]:
        return self.sessions.get(token)

    def reset(self) -> None:
        self.sessions.clear()
