"""Pydantic models for parser input and the HTTP response."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

from smartocr.errors import ErrorKind, ParserError


class ExtractionSchema(BaseModel):
    """Opaque extraction instructions. Passed to the prompt as-is, never parsed."""

    model_config = ConfigDict(frozen=True)

    raw: str

    @classmethod
    def from_string(cls, raw: str) -> "ExtractionSchema":
        if raw is None or not raw.strip():
            raise ParserError(ErrorKind.BLANK_SCHEMA, "extraction schema must not be blank")
        return cls(raw=raw)


class ExtractionRequest(BaseModel):
    """One parse call: optional image, optional text, schema string.

    Invariants (at least one input, non-blank schema) are checked by the
    pipeline so each violation surfaces as its own ErrorKind.
    """

    model_config = ConfigDict(frozen=True)

    image: bytes | None = None
    text: str | None = None
    extraction_schema: str


class ExtractionResponse(BaseModel):
    source: Literal["image", "text"]
    data: Any
    processing_time_ms: int


class ErrorResponse(BaseModel):
    detail: str
    kind: ErrorKind
    stage: str | None = None
