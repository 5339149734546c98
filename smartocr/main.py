"""FastAPI document parser service.

Accepts an image or plain text plus an opaque schema and returns the
structured JSON the model extracted. Delegates inference to Ollama.
Privacy: no image logging, no disk writes; images are processed in-memory only.
"""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, File, Form, UploadFile
from fastapi.responses import JSONResponse

from smartocr.config import settings
from smartocr.errors import ParserError
from smartocr.models import ErrorResponse, ExtractionResponse
from smartocr.pipeline import DocumentParser

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

_parser: DocumentParser | None = None

_STATUS_BY_CATEGORY = {
    "validation": 400,
    "extraction": 422,
    "upstream": 502,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the parser on startup if Ollama is configured."""
    global _parser

    if not settings.OLLAMA_URL:
        logger.info("Ollama not configured (OLLAMA_URL is empty), extraction disabled")
    else:
        logger.info("Connecting to Ollama at %s", settings.OLLAMA_URL)
        _parser = DocumentParser.from_settings()

        # Startup probe is informational only
        health = _parser.client.health()
        if health.get("ready"):
            logger.info("Ollama is ready: %d models available", len(health.get("models", [])))
        else:
            logger.warning("Ollama not reachable yet: %s", health)

    yield

    if _parser is not None:
        _parser.close()
        _parser = None


app = FastAPI(title="SmartOCR Document Parser", version="1.0.0", lifespan=lifespan)


def _error_response(err: ParserError) -> JSONResponse:
    body = ErrorResponse(
        detail=err.message,
        kind=err.kind,
        stage=err.stage.value if err.stage is not None else None,
    )
    return JSONResponse(
        status_code=_STATUS_BY_CATEGORY[err.kind.category],
        content=body.model_dump(mode="json"),
    )


@app.post("/api/v1/extract", response_model=ExtractionResponse)
async def extract(
    schema: str = Form(...),
    file: UploadFile | None = File(None),
    text: str | None = Form(None),
):
    """Extract structured data from an uploaded image or from plain text."""
    if _parser is None:
        return JSONResponse(
            status_code=503,
            content={"detail": "Document extraction is not available - no Ollama server configured"},
        )

    image_bytes = await file.read() if file is not None else None
    source = "image" if image_bytes is not None else "text"

    logger.info(
        "Processing extraction: source=%s image=%s bytes text=%s chars schema=%d chars",
        source,
        len(image_bytes) if image_bytes is not None else "-",
        len(text) if text is not None else "-",
        len(schema),
    )

    start = time.monotonic()
    try:
        data = _parser.parse(image=image_bytes, text=text, schema=schema)
    except ParserError as e:
        logger.error("Extraction failed: %s", e)
        return _error_response(e)

    return ExtractionResponse(
        source=source,
        data=data,
        processing_time_ms=int((time.monotonic() - start) * 1000),
    )


@app.get("/health")
async def health():
    """Return service status and Ollama reachability."""
    base = {
        "status": "healthy",
        "ollama_configured": _parser is not None,
    }

    if _parser is not None:
        base["ollama_health"] = _parser.client.health()

    return base


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
