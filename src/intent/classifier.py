"""Rule-based intent classification and entity extraction for chat messages."""

from __future__ import annotations

import re

from src.intent.models import (
    ConversationContext,
    DateBucket,
    ExtractedEntities,
    IntentClassification,
    UserIntent,
)
from src.intent.references import resolve_references
from src.intent.rules import INTENT_RULES, IntentRule, match_rule

MATCHED_CONFIDENCE = 0.9
FALLBACK_CONFIDENCE = 0.5

# A run of capitalised words, optionally joined by "and" ("David and Emily Williams")
_NAME_RUN_PATTERN = re.compile(r"\b([A-Z][a-z]+(?:\s+(?:and\s+)?[A-Z][a-z]+)*)\b")

# Capitalised words that open a sentence but are not part of a client name there
NON_NAME_WORDS: frozenset[str] = frozenset(
    {
        "And", "Any", "Approve", "Are", "Can", "Cancel", "Complete", "Confirm",
        "Could", "Did", "Do", "Does", "Don", "Find", "Finish", "Give", "Go",
        "Hello", "Hey", "Hi", "How", "Info", "Information", "Is", "It", "Let",
        "List", "Looks", "Mark", "Me", "My", "No", "Ok", "Okay", "Pending",
        "Please", "Reject", "Review", "Send", "Should", "Show", "Status", "Tell",
        "Thank", "Thanks", "That", "The", "This", "Today", "Tomorrow", "Update",
        "What", "When", "Where", "Which", "Who", "Why", "Would", "Yes",
    }
)

_DATE_PATTERNS: tuple[tuple[re.Pattern[str], DateBucket], ...] = (
    (re.compile(r"\btoday\b", re.IGNORECASE), DateBucket.TODAY),
    (re.compile(r"\btomorrow\b", re.IGNORECASE), DateBucket.TOMORROW),
    (re.compile(r"\bthis\s+week\b", re.IGNORECASE), DateBucket.WEEK),
)

_ACTION_PATTERN = re.compile(r"\b(approve|reject|complete|send|cancel)\b", re.IGNORECASE)


def _starts_sentence(message: str, index: int) -> bool:
    before = message[:index].rstrip()
    return not before or before[-1] in ".!?"


def _extract_client_name(message: str) -> str | None:
    for match in _NAME_RUN_PATTERN.finditer(message):
        words = match.group(1).split()
        if _starts_sentence(message, match.start()):
            while words and words[0] in NON_NAME_WORDS:
                words.pop(0)
        while words and words[0] == "and":
            words.pop(0)
        if words:
            return " ".join(words)
    return None


def extract_entities(message: str) -> ExtractedEntities:
    """Extract client name, relative date and action verb from a raw message.

    Runs independently of the intent. Each field takes the first match only.
    """
    entities = ExtractedEntities(client_name=_extract_client_name(message))

    for pattern, bucket in _DATE_PATTERNS:
        if pattern.search(message):
            entities.date = bucket
            break

    action = _ACTION_PATTERN.search(message)
    if action:
        entities.action = action.group(1).lower()

    return entities


def classify_intent(
    message: str,
    context: ConversationContext | None = None,
    rules: tuple[IntentRule, ...] = INTENT_RULES,
) -> IntentClassification:
    """Classify a user message into an intent with extracted entities.

    The first matching rule wins with confidence 0.9, and its entities have
    pronoun references resolved against ``context``. Messages that match no
    rule are general questions with confidence 0.5 and unresolved entities.
    """
    normalized = message.lower().strip()
    rule = match_rule(normalized, rules)

    if rule is not None:
        return IntentClassification(
            intent=rule.intent,
            entities=resolve_references(extract_entities(message), message, context),
            confidence=MATCHED_CONFIDENCE,
        )

    return IntentClassification(
        intent=UserIntent.GENERAL_QUESTION,
        entities=extract_entities(message),
        confidence=FALLBACK_CONFIDENCE,
    )
