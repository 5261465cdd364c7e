"""Tests for prompt assembly."""

from __future__ import annotations

import json

import pytest

from src.chat.prompts import (
    INTENT_INSTRUCTIONS,
    SYSTEM_PROMPT,
    PromptData,
    build_prompt,
    build_user_prompt,
    get_intent_instructions,
)
from src.crm.models import Client
from src.crm.store import CrmStore
from src.intent.models import ConversationContext, UserIntent


def _section(prompt: str, header: str) -> object:
    """Parse the JSON block that follows ``header`` in ``prompt``."""
    start = prompt.index(header) + len(header)
    decoder = json.JSONDecoder()
    value, _ = decoder.raw_decode(prompt[start:].lstrip())
    return value


class TestInstructions:
    def test_every_intent_has_instructions(self) -> None:
        assert set(INTENT_INSTRUCTIONS) == set(UserIntent)

    def test_unknown_intent_falls_back_to_general(self) -> None:
        assert get_intent_instructions("not_an_intent") == INTENT_INSTRUCTIONS[UserIntent.GENERAL_QUESTION]

    def test_accepts_plain_string(self) -> None:
        assert get_intent_instructions("approve_task") == INTENT_INSTRUCTIONS[UserIntent.APPROVE_TASK]

    def test_system_prompt_describes_card_format(self) -> None:
        assert "<<<CARD:" in SYSTEM_PROMPT
        for card in ("task-list", "task", "client", "review", "confirmation"):
            assert card in SYSTEM_PROMPT


class TestBuildPrompt:
    def test_starts_with_intent_instructions(self) -> None:
        prompt = build_prompt(UserIntent.SHOW_PENDING_REVIEWS, PromptData())
        assert prompt.startswith(INTENT_INSTRUCTIONS[UserIntent.SHOW_PENDING_REVIEWS])

    def test_task_list_embedded_as_camel_case_json(self, store: CrmStore) -> None:
        prompt = build_prompt(UserIntent.SHOW_TODAYS_TASKS, PromptData(tasks=store.tasks_for_today()))
        tasks = _section(prompt, "Available tasks:")
        assert isinstance(tasks, list)
        assert [t["id"] for t in tasks] == ["2", "4", "1", "5", "3"]
        assert tasks[0]["clientName"] == "Sarah Chen"
        assert tasks[0]["status"] == "needs-review"

    def test_single_task_section(self, store: CrmStore) -> None:
        prompt = build_prompt(UserIntent.APPROVE_TASK, PromptData(task=store.get_task("1")))
        task = _section(prompt, "Task details:")
        assert isinstance(task, dict)
        assert task["id"] == "1"
        assert task["aiCompletionData"]["confidence"] == 92
        assert "Available tasks:" not in prompt

    def test_client_sections(self, store: CrmStore) -> None:
        client = store.get_client("2")
        prompt = build_prompt(UserIntent.SHOW_CLIENT_INFO, PromptData(client=client))
        assert _section(prompt, "Client information:") == [client.to_json_dict()]
        assert _section(prompt, "Client details:") == client.to_json_dict()

    def test_empty_data_has_no_sections(self) -> None:
        prompt = build_prompt(UserIntent.GENERAL_QUESTION, PromptData())
        for header in ("Available tasks:", "Task details:", "Client information:"):
            assert header not in prompt

    def test_context_lines(self) -> None:
        context = ConversationContext(focused_task_id="4", last_intent="show_todays_tasks")
        prompt = build_prompt(UserIntent.APPROVE_TASK, PromptData(), context)
        assert "Previous intent: show_todays_tasks" in prompt
        assert "Currently focused task ID: 4" in prompt

    def test_context_client_only_adds_nothing(self) -> None:
        prompt = build_prompt(UserIntent.APPROVE_TASK, PromptData(), ConversationContext(focused_client_id="3"))
        assert "Previous intent" not in prompt
        assert "Currently focused" not in prompt

    def test_non_ascii_kept(self) -> None:
        client = Client(id="7", name="Zoë Tremblay")
        prompt = build_prompt(UserIntent.SHOW_CLIENT_INFO, PromptData(client=client))
        assert "Zoë Tremblay" in prompt


@pytest.mark.parametrize("message", ["approve it", "What's new?\nAnything else?"])
def test_user_prompt_appends_message(message: str) -> None:
    assert build_user_prompt("PROMPT", message) == f"PROMPT\n\nUser message: {message}"
