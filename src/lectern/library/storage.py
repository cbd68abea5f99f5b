"""Filesystem store for uploaded book text."""

from __future__ import annotations

import logging
import uuid
from pathlib import Path

log = logging.getLogger(__name__)


class BookStorage:
    def __init__(self, book_dir: Path) -> None:
        self._book_dir = book_dir
        self._book_dir.mkdir(parents=True, exist_ok=True)

    def save_text(self, text: str) -> Path:
        """Write text under a fresh uuid4 name and return its path."""
        path = self._book_dir / f"{uuid.uuid4()}.txt"
        path.write_text(text, encoding="utf-8", newline="")
        log.debug("stored %d chars at %s", len(text), path)
        return path

    def read_text(self, file_path: str | Path) -> str:
        # newline="" keeps "\r\n" intact so offsets match the segmented upload
        with open(file_path, encoding="utf-8", newline="") as f:
            return f.read()

    def delete(self, file_path: str | Path) -> None:
        path = Path(file_path)
        if path.exists():
            path.unlink()
