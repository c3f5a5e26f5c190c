"""Local object storage for uploaded documents."""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Final, Optional
from urllib.parse import quote

LOGGER = logging.getLogger(__name__)

URL_PREFIX: Final[str] = "/uploads"
_FILENAME_SAFE_CHARS_RE: Final[re.Pattern[str]] = re.compile(r"[^A-Za-z0-9._-]+")


def sanitize_filename(filename: str) -> str:
    """Return a filesystem-safe filename preserving the extension when possible."""
    if not filename:
        filename = "upload"
    # Remove any path components and replace disallowed characters.
    sanitized = Path(filename).name
    sanitized = _FILENAME_SAFE_CHARS_RE.sub("_", sanitized)
    sanitized = sanitized.strip("._") or "upload"
    return sanitized


class LocalFileStorage:
    """Store uploads under ``<root>/<namespace>/`` and hand out URLs for them.

    Files are served by the application under :data:`URL_PREFIX`; the
    optional ``public_base_url`` turns those paths into absolute URLs.
    """

    def __init__(self, root: str | Path, *, public_base_url: str = "") -> None:
        self.root = Path(root)
        self._public_base_url = public_base_url.rstrip("/")

    def store(self, data: bytes, filename: str, namespace: str) -> str:
        """Persist *data* and return the URL it is served at."""

        directory = self.root / sanitize_filename(namespace)
        directory.mkdir(parents=True, exist_ok=True)
        destination = directory / sanitize_filename(filename)
        destination.write_bytes(data)
        LOGGER.info("Stored %s (%d bytes) at %s", filename, len(data), destination)
        return self._url(destination)

    def url_for(self, namespace: str) -> Optional[str]:
        """Return the URL of the document stored for *namespace*, if any."""

        directory = self.root / sanitize_filename(namespace)
        if not directory.is_dir():
            return None
        files = sorted(path for path in directory.iterdir() if path.is_file())
        if not files:
            return None
        return self._url(files[0])

    def _url(self, path: Path) -> str:
        relative = path.relative_to(self.root).as_posix()
        return f"{self._public_base_url}{URL_PREFIX}/{quote(relative)}"


__all__ = ["LocalFileStorage", "URL_PREFIX", "sanitize_filename"]
