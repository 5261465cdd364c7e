"""Pydantic request/response schemas for the advisor chat API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.chat.orchestrator import TurnResult
from src.intent.models import ConversationContext


class ChatContext(BaseModel):
    """Focus state the client sends with each turn and receives back as a patch."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    focused_task_id: str | None = None
    focused_client_id: str | None = None
    last_intent: str | None = None

    def to_domain(self) -> ConversationContext:
        return ConversationContext(
            focused_task_id=self.focused_task_id,
            focused_client_id=self.focused_client_id,
            last_intent=self.last_intent,
        )

    @classmethod
    def from_domain(cls, context: ConversationContext) -> ChatContext:
        return cls(
            focused_task_id=context.focused_task_id,
            focused_client_id=context.focused_client_id,
            last_intent=context.last_intent,
        )


class ChatRequest(BaseModel):
    """Request body for the /api/chat endpoints."""

    message: str = Field(min_length=1)
    context: ChatContext | None = None


class CardModel(BaseModel):
    """A card recovered from the assistant's reply."""

    type: str
    data: Any


class ChatResponse(BaseModel):
    """Response body for the /api/chat endpoint.

    ``cards`` and ``context`` are left out of the JSON when empty.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    content: str
    cards: list[CardModel] | None = None
    context: ChatContext | None = None
    tasks_updated: bool


class ErrorResponse(BaseModel):
    error: str
    details: list[dict[str, Any]] | None = None


def chat_response_body(result: TurnResult) -> dict[str, Any]:
    """Serialise a turn result to the wire shape, omitting empty optional fields.

    Card payloads are passed through untouched, including any null values.
    """
    body: dict[str, Any] = {"content": result.content}
    if result.cards:
        body["cards"] = [CardModel(type=c.type, data=c.data).model_dump() for c in result.cards]
    if not result.context.is_empty():
        body["context"] = ChatContext.from_domain(result.context).model_dump(
            by_alias=True, exclude_none=True
        )
    body["tasksUpdated"] = result.tasks_updated
    return body
