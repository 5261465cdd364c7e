"""Data models for assistant message content: text segments and embedded cards."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class CardType(StrEnum):
    """Card types the chat renderer knows how to draw."""

    TASK_LIST = "task-list"
    TASK = "task"
    CLIENT = "client"
    CLIENT_LIST = "client-list"
    POLICY = "policy"
    POLICY_LIST = "policy-list"
    REVIEW = "review"
    CONFIRMATION = "confirmation"
    EMAIL_COMPOSER = "email-composer"
    DATA_TABLE = "data-table"
    CHART = "chart"
    COMPLIANCE_CHECK = "compliance-check"
    PROPOSAL = "proposal"
    COMPARISON = "comparison"
    DASHBOARD = "dashboard"
    PORTFOLIO_REVIEW = "portfolio-review"
    CALENDAR = "calendar"
    MEETING_NOTES = "meeting-notes"
    REMINDER = "reminder"
    PROGRESS_TRACKER = "progress-tracker"
    RENEWAL_NOTICE = "renewal-notice"
    DOCUMENT_PREVIEW = "document-preview"


class BlockType(StrEnum):
    """Extended block types used by the block renderer."""

    CLIENT_TABLE = "client-table"
    OPPORTUNITY_LIST = "opportunity-list"
    AUTOMATION_LIST = "automation-list"
    CLIENT_PROFILE = "client-profile"
    OPPORTUNITY_DETAIL = "opportunity-detail"
    WORKFLOW_STATUS = "workflow-status"
    TIMELINE = "timeline"
    CHART = "chart"
    CONFIRM_ACTION = "confirm-action"
    SELECT_ENTITY = "select-entity"
    EXPORT_DOWNLOAD = "export-download"
    TEXT = "text"
    ERROR = "error"


KNOWN_CARD_TYPES: frozenset[str] = frozenset(
    {t.value for t in CardType} | {t.value for t in BlockType}
)


def is_known_card_type(card_type: str) -> bool:
    """Return True if ``card_type`` is a card or block type a renderer understands."""
    return card_type in KNOWN_CARD_TYPES


@dataclass(frozen=True)
class Card:
    """A structured UI unit embedded in assistant text.

    ``type`` is taken verbatim from the marker and ``data`` is the decoded JSON
    payload; neither is validated against a schema.
    """

    type: str
    data: Any


@dataclass(frozen=True)
class TextSegment:
    """A run of plain text between card markers."""

    content: str


@dataclass(frozen=True)
class CardSegment:
    """A successfully decoded card marker."""

    card: Card


Segment = TextSegment | CardSegment
