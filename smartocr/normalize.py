"""Strip markdown decoration from OCR output.

Vision models tend to answer in markdown even when told not to. Each pass
below is a single global substitution; they run in order, so a later pass
only ever sees the output of the earlier ones.
"""

import re
from collections.abc import Callable

_CODE_FENCE = re.compile(r"```[a-z]*\n?|```")
_BOLD = re.compile(r"\*\*|__")
_ITALIC = re.compile(r"(?<!\*)\*(?!\*)|(?<!_)_(?!_)")
_HEADER = re.compile(r"^#{1,6}\s+", re.MULTILINE)
_LINK = re.compile(r"\[([^\]]+)\]\([^)]+\)")
_INLINE_CODE = re.compile(r"`([^`]+)`")


def strip_code_fences(text: str) -> str:
    return _CODE_FENCE.sub("", text)


def strip_bold(text: str) -> str:
    return _BOLD.sub("", text)


def strip_italic(text: str) -> str:
    return _ITALIC.sub("", text)


def strip_headers(text: str) -> str:
    return _HEADER.sub("", text)


def strip_links(text: str) -> str:
    """``[label](target)`` -> ``label``."""
    return _LINK.sub(r"\1", text)


def strip_inline_code(text: str) -> str:
    return _INLINE_CODE.sub(r"\1", text)


# Order matters: fences before inline code, bold before italic.
PASSES: tuple[Callable[[str], str], ...] = (
    strip_code_fences,
    strip_bold,
    strip_italic,
    strip_headers,
    strip_links,
    strip_inline_code,
)


def strip_markdown(text: str | None) -> str:
    """Return ``text`` with markdown artifacts removed and whitespace trimmed.

    ``None`` and empty input yield ``""``. Never raises.
    """
    if not text:
        return ""

    result = text
    for apply_pass in PASSES:
        result = apply_pass(result)
    return result.strip()
