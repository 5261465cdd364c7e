"""Data models for intent classification and conversation context."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from enum import StrEnum


class UserIntent(StrEnum):
    """What a user message asks the assistant to do."""

    SHOW_TODAYS_TASKS = "show_todays_tasks"
    SHOW_TASK_STATUS = "show_task_status"
    SHOW_PENDING_REVIEWS = "show_pending_reviews"
    APPROVE_TASK = "approve_task"
    REJECT_TASK = "reject_task"
    SHOW_CLIENT_INFO = "show_client_info"
    COMPLETE_TASK = "complete_task"
    UNDO_LAST_ACTION = "undo_last_action"
    GENERAL_QUESTION = "general_question"


MUTATING_INTENTS: frozenset[UserIntent] = frozenset(
    {UserIntent.APPROVE_TASK, UserIntent.REJECT_TASK, UserIntent.COMPLETE_TASK}
)


class DateBucket(StrEnum):
    """Relative date mentioned in a message."""

    TODAY = "today"
    TOMORROW = "tomorrow"
    WEEK = "week"


@dataclass
class ExtractedEntities:
    """Entities found in (or resolved for) a single message. Any subset may be set."""

    client_name: str | None = None
    date: DateBucket | None = None
    action: str | None = None
    task_id: str | None = None
    client_id: str | None = None

    def to_dict(self) -> dict[str, str]:
        """Return only the fields that are set."""
        return {f.name: str(getattr(self, f.name)) for f in fields(self) if getattr(self, f.name)}


@dataclass
class IntentClassification:
    """Result of classifying a user message."""

    intent: UserIntent
    entities: ExtractedEntities
    confidence: float  # 0.0 - 1.0


@dataclass(frozen=True)
class ConversationContext:
    """Focus state carried across chat turns by the caller.

    The orchestrator returns a sparse patch each turn; callers fold it into
    their copy with :meth:`merge`.
    """

    focused_task_id: str | None = None
    focused_client_id: str | None = None
    last_intent: str | None = None

    def merge(self, patch: ConversationContext | None) -> ConversationContext:
        """Overlay ``patch`` on this context.

        Last writer wins per field. Fields left as None in the patch keep their
        current value, so a patch can never clear a field.
        """
        if patch is None:
            return self
        updates = {
            f.name: getattr(patch, f.name)
            for f in fields(patch)
            if getattr(patch, f.name) is not None
        }
        return replace(self, **updates)

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))
