"""Chunking utilities for breaking documents into retrieval units."""
from __future__ import annotations

import logging
from typing import List, Sequence

from quizrag.errors import InvalidArgument

from .batching import page_block
from .models import Chunk, Page, count_words

LOGGER = logging.getLogger(__name__)

CHUNK_SEPARATOR = "\n\n"
# Characters a character window may be cut after.
_BOUNDARIES = (".", "\n", " ")


def chunk_by_pages(pages: Sequence[Page], min_words: int = 100) -> List[Chunk]:
    """Group consecutive pages into chunks of at least ``min_words`` words.

    Pages are accumulated into a buffer, each prefixed with its ``[Page N]``
    marker (the markers count towards the buffer's word total). The buffer is
    closed once it reaches ``min_words``; the last page always closes it, so
    only the final chunk may fall under the threshold.
    """

    if min_words < 0:
        raise InvalidArgument(f"min_words must be non-negative, got {min_words}")

    chunks: List[Chunk] = []
    blocks: List[str] = []
    page_numbers: List[int] = []
    buffer_words = 0

    for index, page in enumerate(pages):
        block = page_block(page)
        blocks.append(block)
        page_numbers.append(page.page_number)
        buffer_words += count_words(block)

        is_last = index == len(pages) - 1
        next_words = 0 if is_last else pages[index + 1].word_count
        should_merge_next = buffer_words < min_words and next_words < min_words

        if is_last or (not should_merge_next and buffer_words >= min_words):
            chunks.append(Chunk(text=CHUNK_SEPARATOR.join(blocks), page_numbers=tuple(page_numbers)))
            LOGGER.debug("Closed chunk over pages %s with %d words", page_numbers, buffer_words)
            blocks = []
            page_numbers = []
            buffer_words = 0

    return chunks


def chunk_by_length(text: str, chunk_size: int = 1000, overlap: int = 200) -> List[str]:
    """Split *text* into overlapping character windows.

    A window that stops short of the end of the text is cut back to the
    nearest preceding sentence end, line break or space (whichever comes
    last), provided it falls in the back half of the window. The next window
    starts ``overlap`` characters before the previous cut.
    """

    if chunk_size <= 0:
        raise InvalidArgument("chunk_size must be a positive integer")
    if overlap < 0:
        raise InvalidArgument("overlap must be a non-negative integer")
    if overlap >= chunk_size:
        raise InvalidArgument("overlap must be smaller than chunk_size")

    chunks: List[str] = []
    text_length = len(text)
    start = 0

    while start < text_length:
        end = start + chunk_size
        if end < text_length:
            end = _find_boundary(text, start, end, chunk_size)

        piece = text[start:end].strip()
        if piece:
            chunks.append(piece)

        if end >= text_length:
            break
        next_start = end - overlap
        if next_start <= start:
            next_start = end
        start = next_start

    return chunks


def _find_boundary(text: str, start: int, end: int, chunk_size: int) -> int:
    position = max(text.rfind(boundary, start, end + 1) for boundary in _BOUNDARIES)
    if position > start + chunk_size // 2:
        return position + 1
    return end


__all__ = ["chunk_by_length", "chunk_by_pages"]
