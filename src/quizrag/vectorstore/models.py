"""Records exchanged with vector store backends."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Sequence


def encode_page_numbers(page_numbers: Sequence[int]) -> str:
    """Flatten page numbers for backends that only accept scalar metadata."""

    return ",".join(str(number) for number in page_numbers)


def decode_page_numbers(value: object) -> List[int]:
    if isinstance(value, (list, tuple)):
        return [int(item) for item in value]
    if isinstance(value, str) and value.strip():
        return [int(item) for item in value.split(",")]
    return []


def chunk_metadata(
    *,
    text: str,
    filename: str,
    chunk_index: int,
    total_chunks: int,
    page_numbers: Sequence[int] = (),
) -> Dict[str, Any]:
    return {
        "text": text,
        "filename": filename,
        "chunk_index": chunk_index,
        "total_chunks": total_chunks,
        "page_numbers": encode_page_numbers(page_numbers),
    }


@dataclass(slots=True)
class RetrievalMatch:
    """One ranked hit returned by a similarity query."""

    id: str
    text: str
    score: float
    filename: str
    chunk_index: int
    total_chunks: int | None = None
    page_numbers: List[int] = field(default_factory=list)

    @classmethod
    def from_record(cls, record_id: str, score: float, metadata: Mapping[str, Any]) -> "RetrievalMatch":
        total = metadata.get("total_chunks")
        return cls(
            id=str(record_id),
            text=str(metadata.get("text", "")),
            score=float(score),
            filename=str(metadata.get("filename", "")),
            chunk_index=int(metadata.get("chunk_index", 0)),
            total_chunks=int(total) if total is not None else None,
            page_numbers=decode_page_numbers(metadata.get("page_numbers")),
        )
