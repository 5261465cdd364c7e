"""Resolve pronoun references ("approve it") against the conversation focus."""

from __future__ import annotations

import re
from dataclasses import replace

from src.intent.models import ConversationContext, ExtractedEntities

_REFERENCE_PATTERN = re.compile(r"\b(?:it|that|this)\b", re.IGNORECASE)


def has_reference(message: str) -> bool:
    """Return True if the message contains a bare "it", "that" or "this"."""
    return bool(_REFERENCE_PATTERN.search(message))


def resolve_references(
    entities: ExtractedEntities,
    message: str,
    context: ConversationContext | None = None,
) -> ExtractedEntities:
    """Fill task and client ids from the focus context when the message refers back.

    Values extracted directly from the message always win; the context only
    fills fields that are still empty. The input entities are not modified.

    Args:
        entities: Entities extracted from ``message``.
        message: The original user message.
        context: Focus state from previous turns, if any.

    Returns:
        A new ExtractedEntities instance.
    """
    resolved = replace(entities)
    if context is None or not has_reference(message):
        return resolved

    if context.focused_task_id and not resolved.task_id:
        resolved.task_id = context.focused_task_id
    if context.focused_client_id and not resolved.client_id:
        resolved.client_id = context.focused_client_id
    return resolved
