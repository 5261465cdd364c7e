"""Card marker parsing for assistant output.

The model embeds structured cards inline with free text using the marker
``<<<CARD:<type>:<json-object>>>>``. Parsing never raises: anything that does
not form a complete marker with decodable JSON is kept as plain text.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass

from src.content.models import Card, CardSegment, Segment, TextSegment

logger = logging.getLogger(__name__)

CARD_PREFIX = "<<<CARD:"
CARD_SUFFIX = ">>>"
TYPE_SEPARATOR = ":{"


@dataclass
class BraceScanner:
    """String-aware brace counter for a single JSON object.

    Feed characters one at a time starting at the opening ``{``. Braces inside
    string literals are ignored, and an escaped character inside a string is
    consumed together with its backslash.
    """

    depth: int = 0
    in_string: bool = False
    escape_pending: bool = False

    def feed(self, char: str) -> bool:
        """Consume one character. Return True when the outermost object closes."""
        if self.escape_pending:
            self.escape_pending = False
            return False

        if self.in_string:
            if char == "\\":
                self.escape_pending = True
            elif char == '"':
                self.in_string = False
            return False

        if char == '"':
            self.in_string = True
        elif char == "{":
            self.depth += 1
        elif char == "}":
            self.depth -= 1
            return self.depth == 0
        return False


@dataclass(frozen=True)
class JsonSpan:
    """A balanced JSON object found in a larger string."""

    text: str
    end: int  # index one past the closing brace


@dataclass(frozen=True)
class MarkerMatch:
    """A syntactically complete card marker (JSON not yet decoded)."""

    start: int
    end: int  # index one past the suffix
    card_type: str
    json_text: str


def extract_json(content: str, start: int) -> JsonSpan | None:
    """Extract the balanced JSON object that opens at ``content[start]``.

    Returns None if ``content[start]`` is not ``{`` or the object never closes.
    """
    if start >= len(content) or content[start] != "{":
        return None

    scanner = BraceScanner()
    for i in range(start, len(content)):
        if scanner.feed(content[i]):
            return JsonSpan(text=content[start : i + 1], end=i + 1)
    return None


def match_marker(content: str, marker_start: int) -> MarkerMatch | None:
    """Try to read a full card marker beginning at ``marker_start``.

    ``marker_start`` must point at an occurrence of :data:`CARD_PREFIX`.
    """
    type_start = marker_start + len(CARD_PREFIX)
    separator = content.find(TYPE_SEPARATOR, type_start)
    if separator == -1:
        return None

    span = extract_json(content, separator + 1)
    if span is None:
        return None

    if not content.startswith(CARD_SUFFIX, span.end):
        return None

    return MarkerMatch(
        start=marker_start,
        end=span.end + len(CARD_SUFFIX),
        card_type=content[type_start:separator],
        json_text=span.text,
    )


def _reject_constant(name: str) -> None:
    raise ValueError(f"Non-standard JSON constant: {name}")


def _finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"Number out of range: {text}")
    return value


def _ensure_encodable(data: object) -> None:
    # Unpaired surrogate escapes decode fine but cannot be sent as UTF-8
    json.dumps(data, ensure_ascii=False).encode("utf-8")


def _decode_card(content: str, match: MarkerMatch) -> Segment:
    try:
        data = json.loads(
            match.json_text, parse_constant=_reject_constant, parse_float=_finite_float
        )
        _ensure_encodable(data)
    except ValueError as exc:
        logger.warning("Failed to parse %s card JSON: %s", match.card_type, exc)
        return TextSegment(content=content[match.start : match.end])
    return CardSegment(card=Card(type=match.card_type, data=data))


def _append_text(segments: list[Segment], text: str) -> None:
    text = text.strip()
    if text:
        segments.append(TextSegment(content=text))


def parse_message_content(content: str | None) -> list[Segment]:
    """Split assistant output into ordered text and card segments.

    Args:
        content: Raw model output, possibly containing card markers.

    Returns:
        Segments in document order. Text segments are trimmed and never empty.
        A marker whose JSON cannot be decoded is returned verbatim as text.
    """
    if not content:
        return []

    segments: list[Segment] = []
    last_index = 0
    search_index = 0

    while search_index < len(content):
        marker_start = content.find(CARD_PREFIX, search_index)
        if marker_start == -1:
            break

        match = match_marker(content, marker_start)
        if match is None:
            # Not a marker after all; keep scanning just past this prefix.
            search_index = marker_start + 1
            continue

        _append_text(segments, content[last_index:marker_start])
        segments.append(_decode_card(content, match))
        last_index = search_index = match.end

    _append_text(segments, content[last_index:])

    if not segments and content.strip():
        segments.append(TextSegment(content=content.strip()))

    return segments


def extract_cards(content: str | None) -> list[Card]:
    """Return only the decoded cards from ``content``, in order."""
    return [s.card for s in parse_message_content(content) if isinstance(s, CardSegment)]


def strip_card_markers(content: str | None) -> str:
    """Return the plain-text rendering of ``content`` with all cards removed."""
    segments = parse_message_content(content)
    return " ".join(s.content for s in segments if isinstance(s, TextSegment)).strip()


def has_cards(content: str | None) -> bool:
    """Cheap check for a card prefix. True even if the marker is malformed."""
    return content is not None and CARD_PREFIX in content
