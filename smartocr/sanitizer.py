"""Recover a single JSON value from raw LLM output.

Handles: markdown code fences, preamble/trailing commentary, and
delimiter characters inside string literals. Nothing here repairs broken
JSON; a candidate either parses or the call fails with a ``ParserError``
describing why.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

from smartocr.errors import ErrorKind, ParserError, preview

logger = logging.getLogger(__name__)

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*\n?(.*?)\n?```", re.DOTALL | re.IGNORECASE)

_DELIMITERS = {"{": "}", "[": "]"}


@dataclass(frozen=True)
class ExtractionCandidate:
    """Where a JSON object/array starts inside a piece of text."""

    source: str
    start: int
    open_char: str
    close_char: str


def extract_json(raw: str | None) -> Any:
    """Return the JSON object or array embedded in ``raw``.

    Raises ParserError with kind EMPTY_INPUT, NO_STRUCTURE_FOUND,
    UNBALANCED_STRUCTURE or INVALID_JSON.
    """
    if raw is None or not raw.strip():
        raise ParserError(ErrorKind.EMPTY_INPUT, "Response is empty or blank")

    candidate = find_candidate(raw)
    candidate_text = balanced_slice(candidate)

    try:
        return json.loads(candidate_text)
    except json.JSONDecodeError as e:
        logger.warning("Candidate is not valid JSON (%s): %s", e.msg, preview(candidate_text))
        raise ParserError(
            ErrorKind.INVALID_JSON,
            f"Invalid JSON: {e.msg}\nExtracted: {candidate_text}",
            details={"parser_message": str(e), "candidate": candidate_text},
        ) from e


def is_valid_json(text: str | None) -> bool:
    """True if ``text`` parses as JSON as-is. Never raises."""
    if text is None or not text.strip():
        return False
    try:
        json.loads(text)
    except (TypeError, ValueError):
        return False
    return True


def find_candidate(text: str) -> ExtractionCandidate:
    """Pick the text to scan and the offset of its opening delimiter.

    A non-empty fenced block narrows the search to its inner content.
    Otherwise the first ``{`` or ``[`` in the whole text wins, whichever
    comes first.
    """
    search_text = text
    match = _FENCED_BLOCK.search(text)
    if match:
        content = match.group(1).strip()
        if content:
            search_text = content

    starts = {char: search_text.find(char) for char in _DELIMITERS}
    found = [(pos, char) for char, pos in starts.items() if pos >= 0]
    if not found:
        raise ParserError(
            ErrorKind.NO_STRUCTURE_FOUND,
            f"No JSON structure found in response. Preview: {preview(text)}",
            details={"preview": preview(text)},
        )

    start, open_char = min(found)
    return ExtractionCandidate(
        source=search_text,
        start=start,
        open_char=open_char,
        close_char=_DELIMITERS[open_char],
    )


def balanced_slice(candidate: ExtractionCandidate) -> str:
    """Scan forward from the opening delimiter to its matching close.

    Delimiters inside string literals are ignored; a backslash inside a
    string consumes the next character.
    """
    text = candidate.source
    depth = 0
    in_string = False
    escaped = False

    for i in range(candidate.start, len(text)):
        char = text[i]

        if escaped:
            escaped = False
            continue
        if char == "\\" and in_string:
            escaped = True
            continue
        if char == '"':
            in_string = not in_string
            continue
        if in_string:
            continue

        if char == candidate.open_char:
            depth += 1
        elif char == candidate.close_char:
            depth -= 1
            if depth == 0:
                return text[candidate.start:i + 1]

    tail = text[candidate.start:]
    raise ParserError(
        ErrorKind.UNBALANCED_STRUCTURE,
        f"Unbalanced JSON structure: '{candidate.open_char}' at offset "
        f"{candidate.start} is never closed",
        details={"offset": candidate.start, "preview": preview(tail)},
    )
