"""Ordered intent rules.

Rules are evaluated in ascending priority and the first pattern that matches
decides the intent. Earlier rules therefore shadow later ones on ambiguous
input: "show pending reviews for today" is a ``show_todays_tasks`` request,
and "cancel that" is a rejection even though "cancel" is also an action verb.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from src.intent.models import UserIntent


@dataclass(frozen=True)
class IntentRule:
    """One pattern that maps a normalised message to an intent."""

    priority: int
    intent: UserIntent
    pattern: re.Pattern[str]


def _rules(intent: UserIntent, first_priority: int, *patterns: str) -> list[IntentRule]:
    return [
        IntentRule(priority=first_priority + i, intent=intent, pattern=re.compile(p, re.IGNORECASE))
        for i, p in enumerate(patterns)
    ]


INTENT_RULES: tuple[IntentRule, ...] = tuple(
    [
        *_rules(
            UserIntent.UNDO_LAST_ACTION,
            50,
            r"\bundo\b",
            r"take.*back",
            r"revert.*(?:it|that|this|last)",
        ),
        *_rules(
            UserIntent.SHOW_TODAYS_TASKS,
            100,
            r"what.*do.*i.*have.*today",
            r"today'?s.*tasks?",
            r"tasks?.*for.*today",
            r"what'?s.*on.*my.*schedule.*today",
            r"show.*today",
        ),
        *_rules(
            UserIntent.SHOW_TASK_STATUS,
            200,
            r"status.*on",
            r"update.*on",
            r"how'?s.*the",
            r"what'?s.*happening.*with",
        ),
        *_rules(
            UserIntent.SHOW_PENDING_REVIEWS,
            300,
            r"what.*needs?.*(?:my )?(?:approval|review)",
            r"pending.*reviews?",
            r"what.*(?:should|can|must).*i.*(?:approve|review)",
            r"show.*(?:pending|reviews?)",
        ),
        *_rules(
            UserIntent.APPROVE_TASK,
            400,
            r"approve(?:.*(?:it|that|this))?$",
            r"looks?.*good",
            r"(?:go|send).*ahead",
            r"confirm(?:.*(?:it|that|this))?$",
            r"yes.*(?:approve|send)",
        ),
        *_rules(
            UserIntent.REJECT_TASK,
            500,
            r"(?:don'?t|do not).*(?:send|approve)",
            r"reject(?:.*(?:it|that|this))?$",
            r"cancel(?:.*(?:it|that|this))?$",
            r"no.*(?:don'?t|do not)",
        ),
        *_rules(
            UserIntent.SHOW_CLIENT_INFO,
            600,
            r"tell.*me.*about",
            r"who.*is",
            r"show.*(?:me )?(?:client|profile)",
            r"(?:info|information).*(?:on|about|for)",
        ),
        *_rules(
            UserIntent.COMPLETE_TASK,
            700,
            r"mark.*(?:as )?(?:done|complete)",
            r"complete.*(?:the|that)",
            r"finish.*(?:the|that)",
            r"i.*(?:completed|finished|did)",
        ),
    ]
)


def match_rule(normalized: str, rules: Iterable[IntentRule] = INTENT_RULES) -> IntentRule | None:
    """Return the highest-priority rule whose pattern occurs in ``normalized``."""
    for rule in sorted(rules, key=lambda r: r.priority):
        if rule.pattern.search(normalized):
            return rule
    return None
