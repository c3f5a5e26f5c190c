"""Data models used by the ingestion pipeline."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


def count_words(text: str) -> int:
    """Return the number of whitespace-delimited tokens in *text*."""

    return len(text.split())


@dataclass(frozen=True, slots=True)
class Page:
    """Text extracted from a single page of a source document."""

    page_number: int
    text: str
    word_count: int

    @classmethod
    def from_text(cls, page_number: int, text: str) -> "Page":
        return cls(page_number=page_number, text=text, word_count=count_words(text))


@dataclass(frozen=True, slots=True)
class Chunk:
    """Retrieval unit spanning one or more consecutive pages."""

    text: str
    page_numbers: Tuple[int, ...]


Batch = Tuple[Page, ...]
