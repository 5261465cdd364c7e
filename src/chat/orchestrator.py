"""Chat turn pipeline: classify -> gather data -> prompt -> complete -> parse cards.

A turn is stateless apart from the ConversationContext the caller sends in and
the sparse context patch handed back. Task mutations are planned before the
model call but committed only after it succeeds, so a failed or abandoned turn
never changes the store.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

from src.chat.completion import CompletionService
from src.chat.prompts import SYSTEM_PROMPT, PromptData, build_prompt, build_user_prompt
from src.config import Settings
from src.content.markers import extract_cards
from src.content.models import Card, is_known_card_type
from src.crm.models import Client, Task, TaskChange, TaskStatus
from src.crm.store import CrmStore
from src.intent.classifier import classify_intent
from src.intent.models import (
    MUTATING_INTENTS,
    ConversationContext,
    IntentClassification,
    UserIntent,
)

logger = logging.getLogger(__name__)


class TurnStatus(StrEnum):
    """Pipeline phase reported while a turn is in flight."""

    CLASSIFYING_INTENT = "classifying_intent"
    GATHERING_DATA = "gathering_data"
    BUILDING_PROMPT = "building_prompt"
    CALLING_LLM = "calling_llm"
    EXECUTING_ACTION = "executing_action"
    PARSING_RESPONSE = "parsing_response"
    COMPLETE = "complete"


STATUS_MESSAGES: dict[TurnStatus, str] = {
    TurnStatus.CLASSIFYING_INTENT: "Understanding your request...",
    TurnStatus.GATHERING_DATA: "Gathering information...",
    TurnStatus.BUILDING_PROMPT: "Preparing response...",
    TurnStatus.CALLING_LLM: "Ciri is thinking...",
    TurnStatus.EXECUTING_ACTION: "Executing action...",
    TurnStatus.PARSING_RESPONSE: "Processing...",
    TurnStatus.COMPLETE: "",
}


@dataclass(frozen=True)
class TaskMutation:
    """A single field update planned for one task."""

    task_id: str
    updates: dict[str, Any]


@dataclass
class TurnPlan:
    """Data view and pending mutation selected for a classified message."""

    classification: IntentClassification
    tasks: list[Task] = field(default_factory=list)
    focused_task: Task | None = None  # preview of the task after ``mutation`` or ``undo``
    focused_client: Client | None = None
    mutation: TaskMutation | None = None
    undo: TaskChange | None = None


@dataclass
class TurnResult:
    """Outcome of one chat turn."""

    intent: UserIntent
    content: str
    cards: list[Card]
    context: ConversationContext  # sparse patch for the caller to merge
    tasks_updated: bool


@dataclass
class TurnEvent:
    status: TurnStatus
    message: str
    result: TurnResult | None = None


def _event(status: TurnStatus, result: TurnResult | None = None) -> TurnEvent:
    return TurnEvent(status=status, message=STATUS_MESSAGES[status], result=result)


def mutation_updates(intent: UserIntent, now: datetime) -> dict[str, Any]:
    """Return the task field updates a mutating intent applies."""
    if intent in (UserIntent.APPROVE_TASK, UserIntent.COMPLETE_TASK):
        return {"status": TaskStatus.COMPLETED, "completed_at": now}
    if intent is UserIntent.REJECT_TASK:
        return {"status": TaskStatus.PENDING, "ai_completed": False, "ai_completion_data": None}
    raise ValueError(f"{intent} does not mutate tasks")


class ChatOrchestrator:
    """Runs chat turns against a CRM store and a completion service."""

    def __init__(self, store: CrmStore, completion: CompletionService, settings: Settings) -> None:
        self._store = store
        self._completion = completion
        self._settings = settings

    def plan_turn(
        self,
        classification: IntentClassification,
        context: ConversationContext | None = None,
    ) -> TurnPlan:
        """Select the data view for an intent and plan any task mutation.

        A mutating intent targets ``entities.task_id``, falling back to the
        focused task in ``context``. With no resolvable target the mutation is
        skipped silently and the full task list is used. An undo previews the
        task as it was before the most recent chat-applied change.
        """
        intent = classification.intent
        entities = classification.entities
        plan = TurnPlan(classification=classification, tasks=self._store.list_tasks())

        if intent is UserIntent.SHOW_TODAYS_TASKS:
            plan.tasks = self._store.tasks_for_today()

        elif intent is UserIntent.SHOW_PENDING_REVIEWS:
            plan.tasks = self._store.pending_review_tasks()

        elif intent in (UserIntent.SHOW_TASK_STATUS, UserIntent.SHOW_CLIENT_INFO):
            if entities.client_name:
                client = self._store.get_client_by_name(entities.client_name)
                if client is not None:
                    plan.focused_client = client
                    plan.tasks = self._store.tasks_for_client(client.id)

        elif intent in MUTATING_INTENTS:
            task_id = entities.task_id or (context.focused_task_id if context else None)
            task = self._store.get_task(task_id) if task_id else None
            if task is not None:
                updates = mutation_updates(intent, self._store.now())
                plan.mutation = TaskMutation(task_id=task.id, updates=updates)
                plan.focused_task = task.model_copy(update=updates)
            else:
                logger.debug("No target task for %s (task_id=%r)", intent, task_id)

        elif intent is UserIntent.UNDO_LAST_ACTION:
            change = self._store.last_change()
            if change is not None:
                plan.undo = change
                plan.focused_task = change.before
            else:
                logger.debug("Nothing to undo")

        return plan

    def _commit(self, plan: TurnPlan) -> Task | None:
        if plan.mutation is not None:
            return self._store.apply_change(
                plan.mutation.task_id, plan.classification.intent.value, plan.mutation.updates
            )
        if plan.undo is not None:
            return self._store.undo_last_change()
        return None

    async def iter_turn(
        self,
        message: str,
        context: ConversationContext | None = None,
    ) -> AsyncIterator[TurnEvent]:
        """Run one turn, yielding a status event per phase and finally the result."""
        yield _event(TurnStatus.CLASSIFYING_INTENT)
        classification = classify_intent(message, context)
        intent = classification.intent
        logger.info(
            "Classified message as %s (confidence %.1f, entities %s)",
            intent,
            classification.confidence,
            classification.entities.to_dict(),
        )

        yield _event(TurnStatus.GATHERING_DATA)
        plan = self.plan_turn(classification, context)

        yield _event(TurnStatus.BUILDING_PROMPT)
        prompt = build_prompt(
            intent,
            PromptData(tasks=plan.tasks, task=plan.focused_task, client=plan.focused_client),
            context,
        )

        yield _event(TurnStatus.CALLING_LLM)
        text = await self._completion.complete(
            system=SYSTEM_PROMPT,
            prompt=build_user_prompt(prompt, message),
            temperature=self._settings.llm_temperature,
            max_tokens=self._settings.llm_max_tokens,
        )

        updated_task: Task | None = None
        if plan.mutation is not None or plan.undo is not None:
            yield _event(TurnStatus.EXECUTING_ACTION)
            updated_task = self._commit(plan)

        yield _event(TurnStatus.PARSING_RESPONSE)
        cards = extract_cards(text)
        for card in cards:
            if not is_known_card_type(card.type):
                logger.debug("Model emitted unknown card type %r", card.type)

        patch = ConversationContext(
            focused_task_id=updated_task.id if updated_task else None,
            focused_client_id=plan.focused_client.id if plan.focused_client else None,
            last_intent=intent.value,
        )
        result = TurnResult(
            intent=intent,
            content=text,
            cards=cards,
            context=patch,
            tasks_updated=updated_task is not None,
        )
        yield _event(TurnStatus.COMPLETE, result)

    async def handle_turn(
        self,
        message: str,
        context: ConversationContext | None = None,
    ) -> TurnResult:
        """Run one turn to completion and return its result."""
        result: TurnResult | None = None
        async for event in self.iter_turn(message, context):
            if event.result is not None:
                result = event.result
        if result is None:
            raise RuntimeError("Chat turn ended without a result")
        return result
