"""HTTP client wrapper for the advisor chat FastAPI backend.

``ChatSession`` owns the conversation context for one chat: it sends the
current context with every turn and merges the patch the server returns.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any

import httpx

from src.content.markers import strip_card_markers
from src.intent.models import ConversationContext

logger = logging.getLogger(__name__)

API_URL = os.getenv("API_URL", "http://localhost:8000")


def check_health(base_url: str = API_URL) -> bool:
    """Return True if the API server responds to /health."""
    try:
        r = httpx.get(f"{base_url}/health", timeout=5.0)
        return r.status_code == 200
    except httpx.ConnectError:
        return False


def _context_payload(context: ConversationContext) -> dict[str, str]:
    payload = {
        "focusedTaskId": context.focused_task_id,
        "focusedClientId": context.focused_client_id,
        "lastIntent": context.last_intent,
    }
    return {k: v for k, v in payload.items() if v is not None}


def _context_from_payload(payload: dict[str, Any] | None) -> ConversationContext | None:
    if not payload:
        return None
    return ConversationContext(
        focused_task_id=payload.get("focusedTaskId"),
        focused_client_id=payload.get("focusedClientId"),
        last_intent=payload.get("lastIntent"),
    )


@dataclass
class ChatReply:
    """One assistant reply as seen by the caller."""

    content: str
    cards: list[dict[str, Any]] = field(default_factory=list)
    tasks_updated: bool = False

    @property
    def plain_text(self) -> str:
        """Reply text with card markers removed, for displays that cannot render cards."""
        return strip_card_markers(self.content)


class ChatSession:
    """A single conversation with the assistant.

    Args:
        base_url: Root URL of the API server.
        client: Optional httpx client (tests pass one bound to the ASGI app).
    """

    def __init__(self, base_url: str = API_URL, client: httpx.Client | None = None) -> None:
        self._client = client or httpx.Client(base_url=base_url, timeout=60.0)
        self.context = ConversationContext()

    def send(self, message: str) -> ChatReply:
        """Send one message and fold the returned context patch into this session.

        Raises:
            httpx.HTTPStatusError: The server rejected the request or failed the turn.
        """
        payload: dict[str, Any] = {"message": message}
        if not self.context.is_empty():
            payload["context"] = _context_payload(self.context)

        r = self._client.post("/api/chat", json=payload)
        if r.is_error:
            logger.warning("Chat turn failed with %s: %s", r.status_code, r.text)
        r.raise_for_status()
        body = r.json()

        self.context = self.context.merge(_context_from_payload(body.get("context")))
        return ChatReply(
            content=body["content"],
            cards=body.get("cards") or [],
            tasks_updated=bool(body.get("tasksUpdated")),
        )

    def reset(self) -> None:
        """Forget the conversation context (start a new chat)."""
        self.context = ConversationContext()

    def close(self) -> None:
        self._client.close()
