"""Library operations: upload, listings, detail view, content reads, chapter jumps."""

from __future__ import annotations

import logging
import random
import time
from pathlib import Path
from typing import Optional

from lectern.config import AppConfig
from lectern.errors import NotFoundError, ValidationError
from lectern.parsers.base import get_parser
from lectern.reading.sync import PositionSync

from .access import require_owned, require_readable
from .database import Database
from .models import (
    BookContent,
    BookDetail,
    BookListItem,
    BookPage,
    ContentSlice,
    PublicBookListItem,
    ReadingProgress,
)
from .storage import BookStorage

log = logging.getLogger(__name__)

MAX_RANDOM_PUBLIC = 10


def _page_offset(page: int, limit: int) -> int:
    if page < 1 or limit < 1:
        raise ValidationError(f"Invalid page {page} or limit {limit}")
    return (page - 1) * limit


class Library:
    def __init__(
        self,
        config: AppConfig,
        db: Database,
        storage: Optional[BookStorage] = None,
    ) -> None:
        self._config = config
        self._db = db
        self.storage = storage or BookStorage(config.book_dir)
        self.sync = PositionSync(db, window_seconds=config.heartbeat_window)

    def import_book(
        self,
        user_id: int,
        file_path: Path,
        title: Optional[str] = None,
        author: Optional[str] = None,
        is_public: bool = False,
    ) -> BookContent:
        """Parse an uploaded file, store it and record its chapters."""
        parser = get_parser(file_path, max_bytes=self._config.max_upload_bytes)
        content = parser.parse(file_path, owner_id=user_id)

        book = content.metadata
        if title is not None:
            if not title.strip():
                raise ValidationError("Title must not be empty")
            book.title = title.strip()
        book.author = author
        book.is_public = is_public
        book.created_at = time.time()

        stored_path = self.storage.save_text(content.text)
        book.file_path = str(stored_path)
        try:
            book_id = self._db.add_book(book)
            self._db.add_chapters(book_id, content.chapters)
        except Exception:
            self.storage.delete(stored_path)
            raise

        log.info(
            "imported %r as book %s (%d chapters)",
            book.title,
            book_id,
            len(content.chapters),
        )
        return content

    def book_detail(self, user_id: int, book_id: int) -> BookDetail:
        book = require_readable(self._db, user_id, book_id)
        chapters = self._db.list_chapters(book_id)

        progress = self._db.get_progress(user_id, book_id)
        if progress is None and book.user_id != user_id:
            progress = self.sync.ensure_progress(user_id, book_id)
        if progress is None:
            progress = ReadingProgress(user_id=user_id, book_id=book_id)

        length = len(self.storage.read_text(book.file_path))
        pct = min(progress.position / length, 1.0) if length else 0.0

        return BookDetail(
            book=book,
            chapters=chapters,
            position=progress.position,
            reading_time=progress.reading_time,
            last_read_at=progress.last_read_at,
            progress_pct=pct,
        )

    def read_content(
        self,
        user_id: int,
        book_id: int,
        position: int,
        length: Optional[int] = None,
    ) -> ContentSlice:
        """Return up to ``length`` characters starting at ``position``."""
        book = require_readable(self._db, user_id, book_id)
        text = self.storage.read_text(book.file_path)

        position = max(position, 0)
        if position >= len(text):
            raise ValidationError(
                f"Position {position} is past the end of book {book_id}"
            )
        end = min(position + self._config.clamp_content_length(length), len(text))
        return ContentSlice(content=text[position:end], next_position=end)

    def jump_to_chapter(self, user_id: int, book_id: int, chapter_id: int) -> int:
        """Return the character offset a chapter starts at."""
        require_readable(self._db, user_id, book_id)
        chapter = self._db.get_chapter(book_id, chapter_id)
        if chapter is None:
            raise NotFoundError(f"Chapter {chapter_id} not in book {book_id}")
        return chapter.offset

    def delete_book(self, user_id: int, book_id: int) -> None:
        book = require_owned(self._db, user_id, book_id)
        self.storage.delete(book.file_path)
        self._db.remove_book(book_id)
        log.info("deleted book %s", book_id)

    def list_books(self, user_id: int, page: int = 1, limit: int = 10) -> BookPage:
        """The user's own books, most recently read first, then newest."""
        offset = _page_offset(page, limit)
        items = []
        for book, progress in self._db.list_books_with_progress(user_id, limit, offset):
            item = BookListItem(book=book)
            if progress is not None:
                item.position = progress.position
                item.reading_time = progress.reading_time
                item.last_read_at = progress.last_read_at
            items.append(item)
        return BookPage(total=self._db.count_books(user_id), books=items)

    def update_book(
        self,
        user_id: int,
        book_id: int,
        title: Optional[str] = None,
        author: Optional[str] = None,
        is_public: Optional[bool] = None,
    ) -> None:
        require_owned(self._db, user_id, book_id)
        if title is not None:
            title = title.strip()
            if not title:
                raise ValidationError("Title must not be empty")
        self._db.update_book(book_id, title=title, author=author, is_public=is_public)

    def list_public_books(self, page: int = 1, limit: int = 10) -> BookPage:
        offset = _page_offset(page, limit)
        items = [
            PublicBookListItem(book=book, owner_username=owner)
            for book, owner in self._db.list_public_books(limit, offset)
        ]
        return BookPage(total=self._db.count_public_books(), books=items)

    def random_public_books(self, count: Optional[int] = None) -> list[PublicBookListItem]:
        """Pick up to ``count`` distinct public books (1-10, default 1)."""
        count = max(1, min(count or 1, MAX_RANDOM_PUBLIC))
        public = self._db.list_public_books()
        chosen = random.sample(public, min(count, len(public)))
        return [PublicBookListItem(book=book, owner_username=owner) for book, owner in chosen]
