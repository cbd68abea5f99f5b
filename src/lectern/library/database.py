"""SQLite database for users, books, chapters and reading progress."""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Iterable, Optional

from .models import Book, Chapter, ReadingProgress, User

log = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY,
    username TEXT UNIQUE NOT NULL,
    total_reading_time INTEGER NOT NULL DEFAULT 0,
    created_at REAL NOT NULL
);

CREATE TABLE IF NOT EXISTS books (
    id INTEGER PRIMARY KEY,
    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    title TEXT NOT NULL,
    author TEXT,
    file_path TEXT NOT NULL,
    is_public INTEGER NOT NULL DEFAULT 0,
    file_size INTEGER DEFAULT 0,
    created_at REAL NOT NULL
);

CREATE TABLE IF NOT EXISTS chapters (
    id INTEGER PRIMARY KEY,
    book_id INTEGER NOT NULL REFERENCES books(id) ON DELETE CASCADE,
    chapter_index INTEGER NOT NULL,
    title TEXT NOT NULL,
    position INTEGER NOT NULL,
    number INTEGER
);

CREATE TABLE IF NOT EXISTS reading_progress (
    id INTEGER PRIMARY KEY,
    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    book_id INTEGER NOT NULL REFERENCES books(id) ON DELETE CASCADE,
    position INTEGER NOT NULL DEFAULT 0,
    reading_time INTEGER NOT NULL DEFAULT 0,
    last_read_at REAL,
    last_device_id TEXT,
    UNIQUE (user_id, book_id)
);
"""


class Database:
    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path
        self._conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA foreign_keys=ON")
        self._init_schema()

    def _init_schema(self) -> None:
        self._conn.executescript(_SCHEMA)
        self._conn.commit()

    def close(self) -> None:
        self._conn.close()

    # ── Users ──────────────────────────────────────────────

    def add_user(self, user: User) -> None:
        self._conn.execute(
            """INSERT INTO users (id, username, total_reading_time, created_at)
               VALUES (?, ?, ?, ?)""",
            (user.id, user.username, user.total_reading_time, user.created_at),
        )
        self._conn.commit()

    def get_user(self, user_id: int) -> Optional[User]:
        row = self._conn.execute(
            "SELECT * FROM users WHERE id = ?", (user_id,)
        ).fetchone()
        if not row:
            return None
        return User(
            id=row["id"],
            username=row["username"],
            total_reading_time=row["total_reading_time"],
            created_at=row["created_at"],
        )

    def increment_user_reading_time(self, user_id: int, delta: int) -> None:
        cur = self._conn.execute(
            "UPDATE users SET total_reading_time = total_reading_time + ? WHERE id = ?",
            (delta, user_id),
        )
        self._conn.commit()
        if cur.rowcount == 0:
            log.warning("reading time for unknown user %s dropped (%ss)", user_id, delta)

    # ── Books ──────────────────────────────────────────────

    def add_book(self, book: Book) -> int:
        cur = self._conn.execute(
            """INSERT INTO books
               (user_id, title, author, file_path, is_public, file_size, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                book.user_id,
                book.title,
                book.author,
                book.file_path,
                int(book.is_public),
                book.file_size,
                book.created_at,
            ),
        )
        self._conn.commit()
        book.id = cur.lastrowid
        return book.id

    def remove_book(self, book_id: int) -> None:
        self._conn.execute("DELETE FROM books WHERE id = ?", (book_id,))
        self._conn.commit()

    def get_book(self, book_id: int) -> Optional[Book]:
        row = self._conn.execute(
            "SELECT * FROM books WHERE id = ?", (book_id,)
        ).fetchone()
        return self._row_to_book(row) if row else None

    def update_book(
        self,
        book_id: int,
        title: Optional[str] = None,
        author: Optional[str] = None,
        is_public: Optional[bool] = None,
    ) -> None:
        updates: list[str] = []
        params: list[object] = []
        if title is not None:
            updates.append("title = ?")
            params.append(title)
        if author is not None:
            updates.append("author = ?")
            params.append(author)
        if is_public is not None:
            updates.append("is_public = ?")
            params.append(int(is_public))
        if not updates:
            return
        params.append(book_id)
        self._conn.execute(
            f"UPDATE books SET {', '.join(updates)} WHERE id = ?", params
        )
        self._conn.commit()

    def count_books(self, user_id: int) -> int:
        return self._conn.execute(
            "SELECT COUNT(*) FROM books WHERE user_id = ?", (user_id,)
        ).fetchone()[0]

    def list_books_with_progress(
        self, user_id: int, limit: int, offset: int
    ) -> list[tuple[Book, Optional[ReadingProgress]]]:
        """The user's own books, most recently read first."""
        rows = self._conn.execute(
            """SELECT b.*, rp.position AS rp_position,
                      rp.reading_time AS rp_reading_time,
                      rp.last_read_at AS rp_last_read_at,
                      rp.last_device_id AS rp_last_device_id,
                      rp.id AS rp_id
               FROM books b
               LEFT JOIN reading_progress rp
                   ON b.id = rp.book_id AND rp.user_id = ?
               WHERE b.user_id = ?
               ORDER BY rp.last_read_at DESC NULLS LAST, b.created_at DESC, b.id DESC
               LIMIT ? OFFSET ?""",
            (user_id, user_id, limit, offset),
        ).fetchall()
        result = []
        for r in rows:
            progress = None
            if r["rp_id"] is not None:
                progress = ReadingProgress(
                    user_id=user_id,
                    book_id=r["id"],
                    position=r["rp_position"],
                    reading_time=r["rp_reading_time"],
                    last_read_at=r["rp_last_read_at"],
                    last_device_id=r["rp_last_device_id"],
                )
            result.append((self._row_to_book(r), progress))
        return result

    def count_public_books(self) -> int:
        return self._conn.execute(
            "SELECT COUNT(*) FROM books WHERE is_public = 1"
        ).fetchone()[0]

    def list_public_books(
        self, limit: Optional[int] = None, offset: int = 0
    ) -> list[tuple[Book, str]]:
        """Public books with their owner's username, newest first."""
        rows = self._conn.execute(
            """SELECT b.*, u.username AS owner_username
               FROM books b
               JOIN users u ON b.user_id = u.id
               WHERE b.is_public = 1
               ORDER BY b.created_at DESC, b.id DESC
               LIMIT ? OFFSET ?""",
            (-1 if limit is None else limit, offset),
        ).fetchall()
        return [(self._row_to_book(r), r["owner_username"]) for r in rows]

    @staticmethod
    def _row_to_book(row: sqlite3.Row) -> Book:
        return Book(
            id=row["id"],
            user_id=row["user_id"],
            title=row["title"],
            author=row["author"],
            file_path=row["file_path"],
            is_public=bool(row["is_public"]),
            file_size=row["file_size"],
            created_at=row["created_at"],
        )

    # ── Chapters ───────────────────────────────────────────

    def add_chapters(self, book_id: int, chapters: Iterable[Chapter]) -> None:
        for ch in chapters:
            cur = self._conn.execute(
                """INSERT INTO chapters (book_id, chapter_index, title, position, number)
                   VALUES (?, ?, ?, ?, ?)""",
                (book_id, ch.index, ch.title, ch.offset, ch.number),
            )
            ch.id = cur.lastrowid
            ch.book_id = book_id
        self._conn.commit()

    def list_chapters(self, book_id: int) -> list[Chapter]:
        rows = self._conn.execute(
            "SELECT * FROM chapters WHERE book_id = ? ORDER BY position, chapter_index",
            (book_id,),
        ).fetchall()
        return [self._row_to_chapter(r) for r in rows]

    def get_chapter(self, book_id: int, chapter_id: int) -> Optional[Chapter]:
        row = self._conn.execute(
            "SELECT * FROM chapters WHERE id = ? AND book_id = ?",
            (chapter_id, book_id),
        ).fetchone()
        return self._row_to_chapter(row) if row else None

    @staticmethod
    def _row_to_chapter(row: sqlite3.Row) -> Chapter:
        return Chapter(
            id=row["id"],
            book_id=row["book_id"],
            index=row["chapter_index"],
            title=row["title"],
            offset=row["position"],
            number=row["number"],
        )

    # ── Reading Progress ───────────────────────────────────

    def put_progress(self, progress: ReadingProgress) -> None:
        self._conn.execute(
            """INSERT INTO reading_progress
               (user_id, book_id, position, reading_time, last_read_at, last_device_id)
               VALUES (?, ?, ?, ?, ?, ?)
               ON CONFLICT (user_id, book_id) DO UPDATE SET
                   position = excluded.position,
                   reading_time = excluded.reading_time,
                   last_read_at = excluded.last_read_at,
                   last_device_id = excluded.last_device_id""",
            (
                progress.user_id,
                progress.book_id,
                progress.position,
                progress.reading_time,
                progress.last_read_at,
                progress.last_device_id,
            ),
        )
        self._conn.commit()

    def get_progress(self, user_id: int, book_id: int) -> Optional[ReadingProgress]:
        row = self._conn.execute(
            "SELECT * FROM reading_progress WHERE user_id = ? AND book_id = ?",
            (user_id, book_id),
        ).fetchone()
        if not row:
            return None
        return ReadingProgress(
            user_id=row["user_id"],
            book_id=row["book_id"],
            position=row["position"],
            reading_time=row["reading_time"],
            last_read_at=row["last_read_at"],
            last_device_id=row["last_device_id"],
        )
