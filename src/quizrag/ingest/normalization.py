"""Text normalisation utilities."""
from __future__ import annotations

import re
import unicodedata

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_page_text(text: str) -> str:
    """Collapse the layout whitespace PDF extraction leaves behind.

    Page text is kept on a single line: words are re-joined with one space so
    downstream word counts match what a reader would count.
    """

    normalized = unicodedata.normalize("NFC", text)
    normalized = normalized.replace("\x00", "")
    return _WHITESPACE_RE.sub(" ", normalized).strip()
