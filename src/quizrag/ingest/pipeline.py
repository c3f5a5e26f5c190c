"""High level ingestion pipeline entry point."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from quizrag.errors import ExtractionFailed

from .chunking import chunk_by_length, chunk_by_pages
from .extractors import PDFExtractor, TextExtractor
from .models import Chunk, Page

LOGGER = logging.getLogger(__name__)

_TEXT_SUFFIXES = {".txt", ".md"}


@dataclass(slots=True)
class IngestPipelineConfig:
    min_chunk_words: int = 100
    chunk_size: int = 1000
    chunk_overlap: int = 200


@dataclass(slots=True)
class IngestOutput:
    """Pages and chunks produced for one document."""

    pages: List[Page] = field(default_factory=list)
    chunks: List[Chunk] = field(default_factory=list)


class IngestPipeline:
    """Pipeline orchestrating document extraction and chunking."""

    def __init__(self, config: Optional[IngestPipelineConfig] = None) -> None:
        self.config = config or IngestPipelineConfig()
        self.pdf_extractor = PDFExtractor()
        self.text_extractor = TextExtractor()

    def extract_pages(self, file_bytes: bytes) -> List[Page]:
        return self.pdf_extractor.extract(file_bytes)

    def ingest(self, file_bytes: bytes, file_name: str) -> IngestOutput:
        """Extract and chunk an uploaded file.

        PDFs are chunked page-aware; plain text has no page structure and
        falls back to character windows whose chunks carry no page numbers.
        """

        suffix = Path(file_name).suffix.lower()
        if suffix in _TEXT_SUFFIXES:
            text = self.text_extractor.extract_text(file_bytes)
            pieces = chunk_by_length(text, self.config.chunk_size, self.config.chunk_overlap)
            chunks = [Chunk(text=piece, page_numbers=()) for piece in pieces]
            LOGGER.info("Generated %s length-based chunks for %s", len(chunks), file_name)
            return IngestOutput(pages=[], chunks=chunks)

        if suffix == ".pdf" or file_bytes.lstrip().startswith(b"%PDF-"):
            pages = self.extract_pages(file_bytes)
            chunks = chunk_by_pages(pages, self.config.min_chunk_words)
            LOGGER.info("Generated %s page chunks from %s pages for %s", len(chunks), len(pages), file_name)
            return IngestOutput(pages=pages, chunks=chunks)

        raise ExtractionFailed(f"Unsupported document format: {suffix or 'unknown'}")


__all__ = ["IngestOutput", "IngestPipeline", "IngestPipelineConfig"]
