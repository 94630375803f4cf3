"""
Voice assistant support: signed conversation URLs and a transcript observer.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional

import requests

from shared.types import MessageRole

logger = logging.getLogger(__name__)

ELEVENLABS_SIGNED_URL_ENDPOINT = (
    "https://api.elevenlabs.io/v1/convai/conversation/get_signed_url"
)
REQUEST_TIMEOUT = 15  # seconds

EVENT_CONNECT = "connect"
EVENT_DISCONNECT = "disconnect"
EVENT_MESSAGE = "message"
EVENT_ERROR = "error"
EVENTS = (EVENT_CONNECT, EVENT_DISCONNECT, EVENT_MESSAGE, EVENT_ERROR)


class SignedUrlError(RuntimeError):
    pass


@dataclass
class Message:
    role: MessageRole
    content: str
    timestamp: datetime = field(default_factory=datetime.now)

    def as_dict(self) -> dict:
        return {
            "role": self.role.value,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
        }


Callback = Callable[[dict], None]


class Conversation:
    """
    Observer for one voice conversation. Callbacks are registered per event
    name; no ordering between different events is assumed.
    """

    def __init__(self):
        self.messages: List[Message] = []
        self.connected = False
        self.last_error: Optional[str] = None
        self._callbacks: Dict[str, List[Callback]] = defaultdict(list)
        self.on(EVENT_CONNECT, self._handle_connect)
        self.on(EVENT_DISCONNECT, self._handle_disconnect)
        self.on(EVENT_MESSAGE, self._handle_message)
        self.on(EVENT_ERROR, self._handle_error)

    def on(self, event: str, callback: Callback) -> None:
        if event not in EVENTS:
            raise ValueError(f"Unknown conversation event: {event}")
        self._callbacks[event].append(callback)

    def dispatch(self, event: str, payload: Optional[dict] = None) -> None:
        if event not in EVENTS:
            raise ValueError(f"Unknown conversation event: {event}")
        for callback in list(self._callbacks[event]):
            callback(payload or {})

    def end(self) -> None:
        self.connected = False
        self.messages.clear()

    def _handle_connect(self, payload: dict) -> None:
        logger.info("Voice assistant connected")
        self.connected = True
        self.last_error = None

    def _handle_disconnect(self, payload: dict) -> None:
        logger.info("Voice assistant disconnected")
        self.connected = False

    def _handle_message(self, payload: dict) -> None:
        text = payload.get("message")
        if not text:
            return
        role = MessageRole.USER if payload.get("source") == "user" else MessageRole.ASSISTANT
        self.messages.append(Message(role=role, content=text))

    def _handle_error(self, payload: dict) -> None:
        self.last_error = payload.get("error") or "Voice connection failed"
        self.connected = False
        logger.error("Conversation error: %s", self.last_error)


def fetch_signed_url(agent_id: str, api_key: Optional[str]) -> str:
    """
    Asks ElevenLabs for a short-lived websocket URL for the given agent.

    Raises:
        SignedUrlError: if the key is missing or the response has no URL.
    """
    if not api_key:
        raise SignedUrlError("ElevenLabs API key not configured")
    try:
        response = requests.get(
            ELEVENLABS_SIGNED_URL_ENDPOINT,
            params={"agent_id": agent_id},
            headers={"xi-api-key": api_key},
            timeout=REQUEST_TIMEOUT,
        )
        response.raise_for_status()
        payload = response.json()
    except (requests.RequestException, ValueError) as e:
        raise SignedUrlError(f"Failed to get signed URL: {e}") from e

    signed_url = payload.get("signed_url") if isinstance(payload, dict) else None
    if not signed_url:
        raise SignedUrlError("Failed to get signed URL")
    return signed_url
