"""Task and client records held by the CRM store."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class TaskStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    NEEDS_REVIEW = "needs-review"


class TaskPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


PRIORITY_ORDER: dict[TaskPriority, int] = {
    TaskPriority.URGENT: 0,
    TaskPriority.HIGH: 1,
    TaskPriority.MEDIUM: 2,
    TaskPriority.LOW: 3,
}


class AIActionType(StrEnum):
    """Kind of work the assistant completed ahead of advisor review."""

    EMAIL_DRAFT = "email_draft"
    MEETING_NOTES = "meeting_notes"
    PORTFOLIO_REVIEW = "portfolio_review"
    POLICY_SUMMARY = "policy_summary"
    CLIENT_SUMMARY = "client_summary"
    COMPLIANCE_CHECK = "compliance_check"
    REPORT = "report"
    REMINDER = "reminder"
    ANALYSIS = "analysis"
    PROPOSAL = "proposal"
    BIRTHDAY_GREETING = "birthday_greeting"
    RENEWAL_NOTICE = "renewal_notice"


class DueWindow(StrEnum):
    TODAY = "today"
    WEEK = "week"
    OVERDUE = "overdue"


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys, as the chat UI expects."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class AICompletionData(CamelModel):
    """Output the assistant prepared for a task."""

    completed_at: datetime
    summary: str
    details: str | None = None
    confidence: int | None = None  # 0 - 100


class Task(CamelModel):
    id: str
    title: str
    description: str | None = None
    status: TaskStatus = TaskStatus.PENDING
    due_date: datetime | None = None
    client_id: str | None = None
    client_name: str | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    tags: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None = None
    ai_completed: bool = False
    ai_action_type: AIActionType | None = None
    ai_completion_data: AICompletionData | None = None


class Client(CamelModel):
    id: str
    name: str
    email: str | None = None
    phone: str | None = None
    segment: str | None = None
    risk_profile: str | None = None
    portfolio_value: float | None = None
    last_contact: datetime | None = None
    next_meeting: datetime | None = None
    notes: str | None = None
    tags: list[str] = Field(default_factory=list)


@dataclass
class TaskFilters:
    """Optional criteria for listing tasks. Unset fields do not filter."""

    status: TaskStatus | None = None
    client_id: str | None = None
    ai_completed: bool | None = None
    due: DueWindow | None = None


class TaskChange(CamelModel):
    """One task update applied from chat, kept for the audit trail and undo."""

    action: str
    task_id: str
    at: datetime
    before: Task
    after: Task
