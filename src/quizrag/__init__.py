"""Page-aware PDF quiz generation and grounded question answering."""

__version__ = "0.1.0"
