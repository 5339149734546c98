"""Shared test fixtures for document parser tests."""

import json
import sys
from pathlib import Path

import pytest

# Add repo root to path so the package imports without installation
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture
def sample_image_bytes() -> bytes:
    """Opaque image payload; the pipeline never decodes it."""
    return b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.fixture
def invoice_schema() -> str:
    return json.dumps({
        "type": "object",
        "properties": {
            "invoice_number": {"type": "string"},
            "total": {"type": "number"},
            "date": {"type": "string"},
        },
    })


@pytest.fixture
def invoice_payload() -> dict:
    return {"invoice_number": "INV-2024-001", "total": 1250.5, "date": "2024-03-15"}


@pytest.fixture
def mock_markdown_response(invoice_payload: dict) -> str:
    """Model response wrapped in a json code fence with commentary around it."""
    return (
        "Sure! Here is the data you asked for:\n\n"
        f"```json\n{json.dumps(invoice_payload, indent=2)}\n```\n\n"
        "Let me know if you need anything else {or more}."
    )


@pytest.fixture
def mock_preamble_response(invoice_payload: dict) -> str:
    """Model response with text before and after the JSON."""
    return f"Here is the extracted data:\n\n{json.dumps(invoice_payload)}\n\nHope this helps!"


@pytest.fixture
def mock_ocr_markdown() -> str:
    """OCR output decorated with markdown, as vision models tend to produce."""
    return (
        "# INVOICE\n\n"
        "**Invoice number:** INV-2024-001\n"
        "*Date:* 2024-03-15\n"
        "Total: `1250.50 EUR`\n"
        "Pay at [our portal](https://example.com/pay)\n"
    )
