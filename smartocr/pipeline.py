"""Extraction orchestrator: pick the input, OCR if needed, extract JSON.

Pipeline logic:
- image present -> OCR -> strip markdown -> structured extraction
- text only     -> structured extraction on the text as given
- both present  -> image wins, text is ignored
- neither       -> MISSING_INPUT

Both model calls go through injected callables, so any transport (or a
test double) can be plugged in.
"""

import logging
import time
from collections.abc import Callable
from typing import Any

from smartocr.config import settings
from smartocr.errors import ErrorKind, ParserError, Stage, preview
from smartocr.models import ExtractionRequest, ExtractionSchema
from smartocr.normalize import strip_markdown
from smartocr.ollama_client import OllamaClient
from smartocr.prompts import build_extraction_prompt, build_ocr_prompt
from smartocr.sanitizer import extract_json

logger = logging.getLogger(__name__)

# (model, prompt, image) -> raw text
RecognizeFn = Callable[[str, str, bytes], str]
# (model, prompt) -> raw text
GenerateFn = Callable[[str, str], str]


class ParsingPipeline:
    """Stateless orchestrator over two injected model capabilities."""

    def __init__(
        self,
        recognize: RecognizeFn,
        generate: GenerateFn,
        vision_model: str | None = None,
        text_model: str | None = None,
    ):
        self._recognize = recognize
        self._generate = generate
        self._vision_model = vision_model or settings.VISION_MODEL
        self._text_model = text_model or settings.TEXT_MODEL

    def extract(self, request: ExtractionRequest) -> Any:
        """Run the full pipeline and return the parsed JSON object or array."""
        start = time.monotonic()

        text, source = self.resolve_text(request)
        value = self._extract_structured(text, request.extraction_schema)

        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.info("Extraction from %s completed in %dms", source, elapsed_ms)
        return value

    def resolve_text(self, request: ExtractionRequest) -> tuple[str, str]:
        """Validate ``request`` and return (text to extract from, source)."""
        if request.image is None and request.text is None:
            raise ParserError(ErrorKind.MISSING_INPUT, "At least one of image or text must be provided")

        if not request.extraction_schema or not request.extraction_schema.strip():
            raise ParserError(ErrorKind.BLANK_SCHEMA, "extraction schema must not be blank")

        # Image takes precedence if present, even when text is also given
        if request.image is not None:
            if len(request.image) == 0:
                raise ParserError(ErrorKind.EMPTY_IMAGE, "image must not be empty")
            return self._recognize_text(request.image), "image"

        if not request.text.strip():
            raise ParserError(ErrorKind.BLANK_TEXT, "text must not be blank")
        return request.text, "text"

    def _recognize_text(self, image: bytes) -> str:
        # Privacy: log byte count only, never image content
        logger.info("Running OCR: model=%s image=%d bytes", self._vision_model, len(image))
        try:
            raw = self._recognize(self._vision_model, build_ocr_prompt(), image)
        except Exception as e:
            logger.error("OCR failed: %s", e)
            raise ParserError.upstream(Stage.RECOGNITION, e) from e

        text = strip_markdown(raw)
        logger.info("OCR produced %d chars (%d after cleanup)", len(raw or ""), len(text))
        if not text:
            raise ParserError(ErrorKind.BLANK_TEXT, "OCR produced no text")
        return text

    def _extract_structured(self, text: str, schema: str) -> Any:
        prompt = build_extraction_prompt(schema, text)
        try:
            raw = self._generate(self._text_model, prompt)
        except Exception as e:
            logger.error("Structured extraction call failed: %s", e)
            raise ParserError.upstream(Stage.EXTRACTION, e) from e

        try:
            return extract_json(raw)
        except ParserError as e:
            logger.warning("Could not parse JSON from model response (%s): %s", e.kind.value, preview(raw or ""))
            raise


class DocumentParser:
    """Convenience facade over ``ParsingPipeline``.

    Usage::

        with DocumentParser.from_settings() as parser:
            data = parser.parse_image(image_bytes, schema_json)
    """

    def __init__(self, pipeline: ParsingPipeline, client: OllamaClient | None = None):
        self._pipeline = pipeline
        self._client = client

    @classmethod
    def from_settings(
        cls,
        base_url: str | None = None,
        vision_model: str | None = None,
        text_model: str | None = None,
        **client_kwargs,
    ) -> "DocumentParser":
        """Build a parser whose capabilities both talk to one Ollama server."""
        client = OllamaClient(base_url=base_url, **client_kwargs)
        pipeline = ParsingPipeline(
            recognize=client.send_vision_prompt,
            generate=client.send_prompt,
            vision_model=vision_model,
            text_model=text_model,
        )
        return cls(pipeline, client=client)

    @property
    def client(self) -> OllamaClient | None:
        return self._client

    def close(self):
        if self._client is not None:
            self._client.close()

    def __enter__(self) -> "DocumentParser":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def parse(
        self,
        image: bytes | None = None,
        text: str | None = None,
        schema: str | ExtractionSchema = "",
    ) -> Any:
        """Extract structured data from ``image`` or ``text`` according to ``schema``."""
        raw_schema = schema.raw if isinstance(schema, ExtractionSchema) else schema
        request = ExtractionRequest(image=image, text=text, extraction_schema=raw_schema)
        return self._pipeline.extract(request)

    def parse_image(self, image: bytes, schema: str | ExtractionSchema) -> Any:
        return self.parse(image=image, schema=schema)

    def parse_text(self, text: str, schema: str | ExtractionSchema) -> Any:
        return self.parse(text=text, schema=schema)
