"""In-memory CRM store for tasks and clients.

Each store instance owns its data. The API creates one per process and tests
create their own, so no state leaks between them. Updates are not locked:
two turns mutating the same task concurrently race, last write wins.

Changes applied from chat are kept in a bounded undo stack and a longer
audit trail. Plain ``update_task`` calls are not recorded.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from src.crm.models import (
    PRIORITY_ORDER,
    Client,
    DueWindow,
    Task,
    TaskChange,
    TaskFilters,
    TaskStatus,
)
from src.crm.seed import seed_clients, seed_tasks

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

UNDO_LIMIT = 10
AUDIT_LIMIT = 200


def utc_now() -> datetime:
    return datetime.now(UTC)


def _start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def _sort_key(task: Task) -> tuple[bool, datetime, int]:
    # Tasks without a due date sort last
    due = task.due_date or datetime.max.replace(tzinfo=UTC)
    return (task.due_date is None, due, PRIORITY_ORDER[task.priority])


class CrmStore:
    """Owned, resettable collection of tasks and clients.

    Args:
        tasks: Initial tasks. Defaults to the demo seed.
        clients: Initial clients. Defaults to the demo seed.
        clock: Source of "now"; used for seeding, due-date windows and update stamps.
    """

    def __init__(
        self,
        tasks: list[Task] | None = None,
        clients: list[Client] | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._clock = clock
        self._initial_tasks = tasks
        self._initial_clients = clients
        self._tasks: dict[str, Task] = {}
        self._clients: dict[str, Client] = {}
        self._undo: deque[TaskChange] = deque(maxlen=UNDO_LIMIT)
        self._audit: deque[TaskChange] = deque(maxlen=AUDIT_LIMIT)
        self.reset()

    def now(self) -> datetime:
        return self._clock()

    def reset(self) -> None:
        """Restore the initial data set, discarding all updates."""
        reference = self._clock()
        tasks = self._initial_tasks if self._initial_tasks is not None else seed_tasks(reference)
        clients = (
            self._initial_clients if self._initial_clients is not None else seed_clients(reference)
        )
        self._tasks = {t.id: t.model_copy(deep=True) for t in tasks}
        self._clients = {c.id: c.model_copy(deep=True) for c in clients}
        self._undo.clear()
        self._audit.clear()

    # -- Tasks ---------------------------------------------------------------

    def list_tasks(self, filters: TaskFilters | None = None) -> list[Task]:
        """Return tasks matching ``filters``, earliest due first, then by priority."""
        tasks = list(self._tasks.values())

        if filters is not None:
            if filters.status is not None:
                tasks = [t for t in tasks if t.status == filters.status]
            if filters.client_id is not None:
                tasks = [t for t in tasks if t.client_id == filters.client_id]
            if filters.ai_completed is not None:
                tasks = [t for t in tasks if t.ai_completed == filters.ai_completed]
            if filters.due is not None:
                tasks = [t for t in tasks if self._in_window(t, filters.due)]

        return sorted(tasks, key=_sort_key)

    def _in_window(self, task: Task, window: DueWindow) -> bool:
        if task.due_date is None:
            return False
        today = _start_of_day(self._clock())
        if window is DueWindow.TODAY:
            return today <= task.due_date < today + timedelta(days=1)
        if window is DueWindow.WEEK:
            return today <= task.due_date <= today + timedelta(days=7)
        return task.due_date < today and task.status != TaskStatus.COMPLETED

    def get_task(self, task_id: str) -> Task | None:
        return self._tasks.get(task_id)

    def update_task(self, task_id: str, **fields: Any) -> Task | None:
        """Apply field updates to a task and stamp ``updated_at``.

        Returns:
            The updated task, or None if no task has ``task_id``.
        """
        task = self._tasks.get(task_id)
        if task is None:
            return None
        updated = task.model_copy(update={**fields, "updated_at": self._clock()})
        self._tasks[task_id] = updated
        logger.info("Updated task %s: %s", task_id, ", ".join(sorted(fields)))
        return updated

    def tasks_for_today(self) -> list[Task]:
        """Open tasks due on the current calendar day."""
        return [
            t
            for t in self.list_tasks(TaskFilters(due=DueWindow.TODAY))
            if t.status != TaskStatus.COMPLETED
        ]

    def pending_review_tasks(self) -> list[Task]:
        return self.list_tasks(TaskFilters(status=TaskStatus.NEEDS_REVIEW))

    def tasks_for_client(self, client_id: str) -> list[Task]:
        return self.list_tasks(TaskFilters(client_id=client_id))

    # -- Change history ------------------------------------------------------

    def _record(self, action: str, before: Task, after: Task) -> TaskChange:
        change = TaskChange(
            action=action, task_id=after.id, at=self._clock(), before=before, after=after
        )
        self._audit.append(change)
        logger.info(
            "Audit: %s on task %s (status %s -> %s)", action, after.id, before.status, after.status
        )
        return change

    def apply_change(self, task_id: str, action: str, updates: dict[str, Any]) -> Task | None:
        """Update a task on behalf of a chat action and remember how to undo it.

        Returns:
            The updated task, or None if no task has ``task_id``.
        """
        before = self._tasks.get(task_id)
        if before is None:
            return None
        self.update_task(task_id, **updates)
        after = self._tasks[task_id]
        self._undo.append(self._record(action, before, after))
        return after

    def last_change(self) -> TaskChange | None:
        """The most recent change that can still be undone."""
        return self._undo[-1] if self._undo else None

    def undo_last_change(self) -> Task | None:
        """Restore the task touched by the most recent undoable change.

        Only the last ``UNDO_LIMIT`` changes are kept. The restored task gets a
        fresh ``updated_at``; the undo itself is audited but cannot be undone.

        Returns:
            The restored task, or None if there is nothing to undo.
        """
        if not self._undo:
            return None
        change = self._undo.pop()
        current = self._tasks.get(change.task_id, change.after)
        restored = change.before.model_copy(update={"updated_at": self._clock()})
        self._tasks[change.task_id] = restored
        self._record("undo", current, restored)
        return restored

    def changes(self) -> list[TaskChange]:
        """Audit trail of chat-applied changes, newest first."""
        return list(reversed(self._audit))

    # -- Clients -------------------------------------------------------------

    def list_clients(self, name: str | None = None, risk_profile: str | None = None) -> list[Client]:
        clients = list(self._clients.values())
        if name:
            term = name.lower()
            clients = [c for c in clients if term in c.name.lower()]
        if risk_profile:
            clients = [c for c in clients if c.risk_profile == risk_profile]
        return sorted(clients, key=lambda c: c.name)

    def get_client(self, client_id: str) -> Client | None:
        return self._clients.get(client_id)

    def get_client_by_name(self, name: str) -> Client | None:
        """Return the first client whose name contains ``name`` (case-insensitive)."""
        term = name.lower()
        for client in self._clients.values():
            if term in client.name.lower():
                return client
        return None
