"""Fixed-size page batches for sequential quiz generation."""
from __future__ import annotations

from typing import List, Sequence

from quizrag.errors import InvalidArgument

from .models import Batch, Page

PAGE_SEPARATOR = "\n\n---\n\n"


def page_block(page: Page) -> str:
    """Render *page* with the ``[Page N]`` marker used in prompts and chunks."""

    return f"[Page {page.page_number}]\n{page.text}"


def group_into_batches(pages: Sequence[Page], batch_size: int) -> List[Batch]:
    """Split *pages* into consecutive groups of ``batch_size`` pages.

    The last group holds the remainder. Pages are never reordered, dropped
    or duplicated.
    """

    if batch_size <= 0:
        raise InvalidArgument(f"batch_size must be a positive integer, got {batch_size}")
    return [tuple(pages[start : start + batch_size]) for start in range(0, len(pages), batch_size)]


def batch_text(batch: Batch) -> str:
    return PAGE_SEPARATOR.join(page_block(page) for page in batch)


def batch_page_numbers(batch: Batch) -> List[int]:
    return [page.page_number for page in batch]


__all__ = ["batch_page_numbers", "batch_text", "group_into_batches", "page_block"]
