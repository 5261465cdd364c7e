"""Tests for API endpoints (completion service faked, no API keys required)."""

from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from src.crm.store import CrmStore
from tests.fakes import FakeCompletion


def _sse_events(body: str) -> list[tuple[str, dict]]:
    """Split a text/event-stream body into (event, data) pairs."""
    events = []
    for block in body.strip().split("\n\n"):
        lines = dict(line.split(": ", 1) for line in block.splitlines())
        events.append((lines["event"], json.loads(lines["data"])))
    return events


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


# ---------------------------------------------------------------------------
# POST /api/chat: validation
# ---------------------------------------------------------------------------


class TestChatValidation:
    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"message": ""},
            {"message": 42},
            {"message": "hi", "context": "not an object"},
            {"message": "hi", "context": {"focusedTaskId": 7}},
        ],
    )
    def test_invalid_body_returns_400(
        self, client: TestClient, completion: FakeCompletion, payload: dict
    ) -> None:
        response = client.post("/api/chat", json=payload)
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Invalid request data"
        assert isinstance(body["details"], list)
        assert body["details"]
        # Rejected before any model call
        assert completion.calls == []

    def test_malformed_json_returns_400(self, client: TestClient) -> None:
        response = client.post(
            "/api/chat", content=b"{not json", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request data"


# ---------------------------------------------------------------------------
# POST /api/chat: turns
# ---------------------------------------------------------------------------


class TestChat:
    def test_plain_reply_shape(self, client: TestClient, completion: FakeCompletion) -> None:
        completion.reply = "Hi there!"
        response = client.post("/api/chat", json={"message": "Hello"})

        assert response.status_code == 200
        assert response.json() == {
            "content": "Hi there!",
            "context": {"lastIntent": "general_question"},
            "tasksUpdated": False,
        }

    def test_cards_returned_parsed_with_nulls_kept(
        self, client: TestClient, completion: FakeCompletion
    ) -> None:
        completion.reply = 'Today:\n<<<CARD:task-list:{"title":"Today","tasks":[],"note":null}>>>'
        body = client.post("/api/chat", json={"message": "What do I have today?"}).json()

        assert body["content"] == completion.reply
        assert body["cards"] == [
            {"type": "task-list", "data": {"title": "Today", "tasks": [], "note": None}}
        ]
        assert body["context"] == {"lastIntent": "show_todays_tasks"}

    @pytest.mark.parametrize(
        "card",
        [
            '<<<CARD:chart:{"v":1e400}>>>',
            r'<<<CARD:task:{"t":"\ud800"}>>>',
        ],
    )
    def test_unserialisable_card_degrades_to_text(
        self, client: TestClient, completion: FakeCompletion, card: str
    ) -> None:
        completion.reply = f"Here: {card}"
        response = client.post("/api/chat", json={"message": "Hello"})

        assert response.status_code == 200
        body = response.json()
        assert body["content"] == completion.reply
        assert "cards" not in body

    def test_approve_focused_task(self, client: TestClient) -> None:
        response = client.post(
            "/api/chat",
            json={"message": "approve it", "context": {"focusedTaskId": "1"}},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["tasksUpdated"] is True
        assert body["context"] == {"focusedTaskId": "1", "lastIntent": "approve_task"}

        task = client.get("/api/tasks/1").json()
        assert task["status"] == "completed"
        assert task["completedAt"]

    def test_approve_without_target(self, client: TestClient, store: CrmStore) -> None:
        before = store.list_tasks()
        body = client.post("/api/chat", json={"message": "approve it"}).json()
        assert body["tasksUpdated"] is False
        assert store.list_tasks() == before

    def test_context_accepts_snake_case(self, client: TestClient) -> None:
        body = client.post(
            "/api/chat",
            json={"message": "reject that", "context": {"focused_task_id": "2"}},
        ).json()
        assert body["tasksUpdated"] is True

    def test_client_focus_in_context(self, client: TestClient) -> None:
        body = client.post("/api/chat", json={"message": "Who is Priya Patel?"}).json()
        assert body["context"] == {"focusedClientId": "5", "lastIntent": "show_client_info"}

    def test_completion_failure_returns_500(
        self, client: TestClient, completion: FakeCompletion, store: CrmStore
    ) -> None:
        completion.fail_with()
        before = store.get_task("1")

        response = client.post(
            "/api/chat",
            json={"message": "approve it", "context": {"focusedTaskId": "1"}},
        )

        assert response.status_code == 500
        assert response.json() == {"error": "Language model request failed"}
        assert store.get_task("1") == before

    def test_unexpected_failure_returns_500(
        self, client_no_raise: TestClient, completion: FakeCompletion
    ) -> None:
        completion.error = RuntimeError("boom")
        response = client_no_raise.post("/api/chat", json={"message": "Hello"})
        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}


# ---------------------------------------------------------------------------
# POST /api/chat/stream
# ---------------------------------------------------------------------------


class TestChatStream:
    def test_status_events_then_result(self, client: TestClient, completion: FakeCompletion) -> None:
        completion.reply = "All clear."
        response = client.post("/api/chat/stream", json={"message": "What do I have today?"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        events = _sse_events(response.text)

        kinds = [kind for kind, _ in events]
        assert kinds == ["status"] * 5 + ["result"]
        assert [data["status"] for _, data in events[:-1]] == [
            "classifying_intent",
            "gathering_data",
            "building_prompt",
            "calling_llm",
            "parsing_response",
        ]
        assert events[-1][1] == {
            "content": "All clear.",
            "context": {"lastIntent": "show_todays_tasks"},
            "tasksUpdated": False,
        }

    def test_completion_failure_is_error_event(
        self, client: TestClient, completion: FakeCompletion, store: CrmStore
    ) -> None:
        completion.fail_with()
        before = store.get_task("1")

        response = client.post(
            "/api/chat/stream",
            json={"message": "approve it", "context": {"focusedTaskId": "1"}},
        )

        events = _sse_events(response.text)
        assert events[-1] == ("error", {"error": "Language model request failed"})
        assert store.get_task("1") == before

    def test_out_of_range_number_keeps_result_valid_json(
        self, client: TestClient, completion: FakeCompletion
    ) -> None:
        completion.reply = 'Chart: <<<CARD:chart:{"v":1e400}>>>'
        response = client.post("/api/chat/stream", json={"message": "Hello"})

        kind, data = _sse_events(response.text)[-1]
        assert kind == "result"
        assert "cards" not in data
        assert "Infinity" not in response.text

    def test_validation_happens_before_streaming(self, client: TestClient) -> None:
        response = client.post("/api/chat/stream", json={"message": ""})
        assert response.status_code == 400


# ---------------------------------------------------------------------------
# Tasks and clients
# ---------------------------------------------------------------------------


class TestTasks:
    def test_list_all(self, client: TestClient) -> None:
        tasks = client.get("/api/tasks").json()
        assert len(tasks) == 10
        assert "dueDate" in tasks[0]
        assert "clientName" in tasks[0]

    @pytest.mark.parametrize(
        ("query", "expected"),
        [
            ("status=needs-review", ["2", "1", "3"]),
            ("clientId=1", ["1", "7"]),
            ("aiCompleted=true", ["2", "1", "3"]),
            ("due=today", ["2", "4", "1", "5", "3"]),
            ("status=pending&due=week", ["4", "5", "7", "9", "10"]),
        ],
    )
    def test_filters(self, client: TestClient, query: str, expected: list[str]) -> None:
        tasks = client.get(f"/api/tasks?{query}").json()
        assert [t["id"] for t in tasks] == expected

    def test_invalid_filter_returns_400(self, client: TestClient) -> None:
        response = client.get("/api/tasks?status=archived")
        assert response.status_code == 400

    def test_get_task(self, client: TestClient) -> None:
        task = client.get("/api/tasks/2").json()
        assert task["title"] == "Draft Email: Chen RRSP Contribution Reminder"
        assert task["aiCompletionData"]["confidence"] == 88

    def test_get_missing_task(self, client: TestClient) -> None:
        response = client.get("/api/tasks/999")
        assert response.status_code == 404
        assert response.json() == {"detail": "Task not found"}


class TestClients:
    def test_list(self, client: TestClient) -> None:
        names = [c["name"] for c in client.get("/api/clients").json()]
        assert names == [
            "David and Emily Williams",
            "Michael Johnson",
            "Priya Patel",
            "Robert Thompson",
            "Sarah Chen",
        ]

    def test_filter_by_name(self, client: TestClient) -> None:
        clients = client.get("/api/clients?name=chen").json()
        assert [c["id"] for c in clients] == ["2"]

    def test_filter_by_risk_profile(self, client: TestClient) -> None:
        clients = client.get("/api/clients?riskProfile=Moderate").json()
        assert [c["id"] for c in clients] == ["1", "4"]

    def test_get_client(self, client: TestClient) -> None:
        body = client.get("/api/clients/3").json()
        assert body["name"] == "David and Emily Williams"
        assert body["riskProfile"] == "Conservative"

    def test_get_missing_client(self, client: TestClient) -> None:
        response = client.get("/api/clients/42")
        assert response.status_code == 404
        assert response.json() == {"detail": "Client not found"}


def test_demo_reset_restores_seed(client: TestClient) -> None:
    client.post("/api/chat", json={"message": "approve it", "context": {"focusedTaskId": "1"}})
    assert client.get("/api/tasks/1").json()["status"] == "completed"

    response = client.post("/api/demo/reset")

    assert response.status_code == 204
    assert client.get("/api/tasks/1").json()["status"] == "needs-review"


def test_undo_via_chat_and_change_log(client: TestClient) -> None:
    client.post("/api/chat", json={"message": "approve it", "context": {"focusedTaskId": "1"}})

    body = client.post("/api/chat", json={"message": "undo that"}).json()

    assert body["tasksUpdated"] is True
    assert body["context"] == {"focusedTaskId": "1", "lastIntent": "undo_last_action"}
    assert client.get("/api/tasks/1").json()["status"] == "needs-review"

    changes = client.get("/api/changes").json()
    assert [c["action"] for c in changes] == ["undo", "approve_task"]
    assert changes[1]["taskId"] == "1"
    assert changes[1]["before"]["status"] == "needs-review"
    assert changes[1]["after"]["status"] == "completed"


def test_change_log_empty_after_reset(client: TestClient) -> None:
    client.post("/api/chat", json={"message": "approve it", "context": {"focusedTaskId": "1"}})
    client.post("/api/demo/reset")
    assert client.get("/api/changes").json() == []
