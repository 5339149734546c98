"""Prompts for OCR and schema-driven extraction.

Both are entity-agnostic: the schema is pasted into the extraction prompt
verbatim and never interpreted here.
"""

OCR_PROMPT = """You are an OCR engine.

Extract ALL readable text from the provided image.
Preserve original wording, numbers, dates, reference numbers, and currency values.
Do NOT summarize.
Do NOT interpret.
Do NOT extract fields.
Do NOT add explanations.

Return plain text only."""

_JSON_RULES = """
Rules:
- Output MUST start with { and end with }
- Return ONLY valid JSON - no text before or after
- Use exactly the field names from the schema
- If a value is not found, use null
- Do NOT guess or hallucinate values
- Dates must be ISO-8601 format (YYYY-MM-DD)
- Numbers must be numeric (no currency symbols)
- Do NOT include explanations or comments
- Do NOT include markdown
- NEVER respond with anything other than a JSON object"""

EXTRACTION_PROMPT_TEMPLATE = """You are a data extraction engine. Your output must be ONLY a JSON object, nothing else.

You are given:
1. A JSON schema describing fields to extract
2. A block of unstructured text
""" + _JSON_RULES + """

Schema:
{schema}

Text:
{text}

Respond with JSON only:"""


def build_ocr_prompt() -> str:
    return OCR_PROMPT


def build_extraction_prompt(schema: str, text: str) -> str:
    """Compose the extraction prompt. ``schema`` is inserted byte-for-byte."""
    # Split instead of str.format: schemas are full of braces
    head, rest = EXTRACTION_PROMPT_TEMPLATE.split("{schema}", 1)
    middle, tail = rest.split("{text}", 1)
    return head + schema + middle + text + tail
