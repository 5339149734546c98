"""Failure taxonomy for the document parser.

A single exception type tagged with an ``ErrorKind``. Callers branch on
``err.kind`` (or ``err.kind.category``) instead of catching subclasses.
"""

from enum import Enum
from typing import Any

PREVIEW_CHARS = 200


class Stage(str, Enum):
    """Which external capability an upstream failure came from."""

    RECOGNITION = "recognition"
    EXTRACTION = "extraction"


class ErrorKind(str, Enum):
    MISSING_INPUT = "missing_input"
    BLANK_SCHEMA = "blank_schema"
    EMPTY_IMAGE = "empty_image"
    BLANK_TEXT = "blank_text"
    EMPTY_INPUT = "empty_input"

    NO_STRUCTURE_FOUND = "no_structure_found"
    UNBALANCED_STRUCTURE = "unbalanced_structure"
    INVALID_JSON = "invalid_json"

    UPSTREAM = "upstream"

    @property
    def category(self) -> str:
        return _CATEGORIES[self]


_CATEGORIES: dict[ErrorKind, str] = {
    ErrorKind.MISSING_INPUT: "validation",
    ErrorKind.BLANK_SCHEMA: "validation",
    ErrorKind.EMPTY_IMAGE: "validation",
    ErrorKind.BLANK_TEXT: "validation",
    ErrorKind.EMPTY_INPUT: "validation",
    ErrorKind.NO_STRUCTURE_FOUND: "extraction",
    ErrorKind.UNBALANCED_STRUCTURE: "extraction",
    ErrorKind.INVALID_JSON: "extraction",
    ErrorKind.UPSTREAM: "upstream",
}


class ParserError(Exception):
    """Raised for every failure the parser surfaces to its caller."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        details: dict[str, Any] | None = None,
        stage: Stage | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.details = details or {}
        self.stage = stage

    def __str__(self) -> str:
        prefix = f"[{self.kind.value}]"
        if self.stage is not None:
            prefix = f"[{self.kind.value}:{self.stage.value}]"
        return f"{prefix} {self.message}"

    @classmethod
    def upstream(cls, stage: Stage, cause: BaseException) -> "ParserError":
        return cls(
            ErrorKind.UPSTREAM,
            f"{stage.value.capitalize()} failed: {cause}",
            details={"stage": stage.value, "cause": type(cause).__name__},
            stage=stage,
        )


def preview(text: str, limit: int = PREVIEW_CHARS) -> str:
    """Bounded excerpt of ``text`` for error messages and logs."""
    if len(text) > limit:
        return text[:limit] + "..."
    return text
