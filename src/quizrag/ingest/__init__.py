"""Document ingestion: extraction, page batching and chunking."""

from .batching import batch_page_numbers, batch_text, group_into_batches, page_block
from .chunking import chunk_by_length, chunk_by_pages
from .extractors import PDFExtractor, TextExtractor
from .models import Batch, Chunk, Page, count_words
from .pipeline import IngestOutput, IngestPipeline, IngestPipelineConfig

__all__ = [
    "Batch",
    "Chunk",
    "IngestOutput",
    "IngestPipeline",
    "IngestPipelineConfig",
    "PDFExtractor",
    "Page",
    "TextExtractor",
    "batch_page_numbers",
    "batch_text",
    "chunk_by_length",
    "chunk_by_pages",
    "count_words",
    "group_into_batches",
    "page_block",
]
