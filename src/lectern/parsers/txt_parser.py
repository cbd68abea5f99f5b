"""Plain text parser."""

from __future__ import annotations

import logging
from pathlib import Path

from lectern.errors import ValidationError
from lectern.library.models import Book, BookContent

from .base import BaseParser
from .segmenter import segment_text

log = logging.getLogger(__name__)


class TxtParser(BaseParser):
    SUPPORTED_EXTENSIONS = (".txt", ".text")

    def parse(self, file_path: Path, owner_id: int) -> BookContent:
        size = file_path.stat().st_size
        if self.max_bytes is not None and size > self.max_bytes:
            raise ValidationError(
                f"File too large: {size} bytes (limit {self.max_bytes})"
            )

        raw = file_path.read_bytes()
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ValidationError(f"File is not valid UTF-8: {e}") from e
        text = text.removeprefix("\ufeff")

        meta = Book(
            user_id=owner_id,
            title=file_path.stem,
            file_path=str(file_path),
            file_size=size,
        )
        chapters = segment_text(text, fallback_title=meta.title)
        log.info("parsed %s: %d chapters", file_path.name, len(chapters))
        return BookContent(metadata=meta, text=text, chapters=chapters)
