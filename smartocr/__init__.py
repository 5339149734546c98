"""Recover structured JSON from LLM output for images (via OCR) or plain text."""

from smartocr.errors import ErrorKind, ParserError, Stage
from smartocr.models import ExtractionRequest, ExtractionSchema
from smartocr.normalize import strip_markdown
from smartocr.pipeline import DocumentParser, ParsingPipeline
from smartocr.sanitizer import extract_json, is_valid_json

__all__ = [
    "DocumentParser",
    "ErrorKind",
    "ExtractionRequest",
    "ExtractionSchema",
    "ParserError",
    "ParsingPipeline",
    "Stage",
    "extract_json",
    "is_valid_json",
    "strip_markdown",
]
