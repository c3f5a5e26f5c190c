"""Extractors turning uploaded bytes into ordered pages."""
from __future__ import annotations

import io
import logging
from typing import List

from PyPDF2 import PdfReader

from quizrag.errors import ExtractionFailed

from .models import Page
from .normalization import normalize_page_text

LOGGER = logging.getLogger(__name__)

_PDF_MAGIC = b"%PDF-"


class PDFExtractor:
    """Extract text from PDF documents page by page."""

    def extract(self, data: bytes) -> List[Page]:
        """Return one :class:`Page` per PDF page, in document order.

        Raises :class:`ExtractionFailed` when *data* is not a readable PDF or
        when no page carries any text (scanned documents are not OCR'd).
        """

        if not data.lstrip().startswith(_PDF_MAGIC):
            raise ExtractionFailed("Uploaded file is not a PDF document")

        try:
            reader = PdfReader(io.BytesIO(data))
            raw_pages = list(reader.pages)
        except Exception as error:
            raise ExtractionFailed("Failed to extract PDF content", cause=error) from error

        LOGGER.info("PDF loaded: %d pages", len(raw_pages))

        pages: List[Page] = []
        for index, raw_page in enumerate(raw_pages, start=1):
            try:
                text = raw_page.extract_text() or ""
            except Exception as error:  # pragma: no cover - depends on PDF internals
                LOGGER.warning("Failed to extract text from PDF page %s: %s", index, error)
                text = ""
            page = Page.from_text(index, normalize_page_text(text))
            LOGGER.debug("Extracted page %s: %s words", index, page.word_count)
            pages.append(page)

        if not any(page.text for page in pages):
            raise ExtractionFailed("No text could be extracted from the PDF")
        return pages


class TextExtractor:
    """Extract text from plaintext uploads, which carry no page structure."""

    def extract_text(self, data: bytes, encoding: str = "utf-8") -> str:
        try:
            text = data.decode(encoding)
        except UnicodeDecodeError as error:
            raise ExtractionFailed("Text upload is not valid UTF-8", cause=error) from error
        if not text.strip():
            raise ExtractionFailed("Text upload is empty")
        return text


__all__ = ["PDFExtractor", "TextExtractor"]
