"""Data models for the book library and reading progress."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Optional

from lectern.errors import ValidationError


@dataclass
class User:
    id: int
    username: str
    total_reading_time: int = 0  # seconds, lifetime across all books
    created_at: float = field(default_factory=time.time)


@dataclass
class Book:
    user_id: int  # owner
    title: str
    file_path: str
    author: Optional[str] = None
    is_public: bool = False
    file_size: int = 0
    created_at: float = field(default_factory=time.time)
    id: Optional[int] = None  # assigned on insert

    def readable_by(self, user_id: int) -> bool:
        return self.user_id == user_id or self.is_public


@dataclass
class Chapter:
    """A chapter boundary inside a book's text."""

    index: int
    title: str
    offset: int  # character index into the full text
    number: Optional[int] = None  # numbering parsed from the title, if any
    id: Optional[int] = None
    book_id: Optional[int] = None


@dataclass
class BookContent:
    """Full parsed book: metadata, the untouched text and its chapters."""

    metadata: Book
    text: str
    chapters: list[Chapter] = field(default_factory=list)


@dataclass
class ReadingProgress:
    user_id: int
    book_id: int
    position: int = 0  # character offset
    reading_time: int = 0  # seconds spent in this book
    last_read_at: Optional[float] = None
    last_device_id: Optional[str] = None


@dataclass
class HeartbeatRequest:
    book_id: int
    position: int
    device_id: str

    def __post_init__(self) -> None:
        if self.position < 0:
            raise ValidationError(f"position must be >= 0, got {self.position}")


@dataclass
class HeartbeatResponse:
    synced: bool
    position: int
    reading_time: int


@dataclass
class ContentSlice:
    content: str
    next_position: int


@dataclass
class BookDetail:
    book: Book
    chapters: list[Chapter]
    position: int = 0
    reading_time: int = 0
    last_read_at: Optional[float] = None
    progress_pct: float = 0.0  # 0.0 - 1.0


@dataclass
class BookListItem:
    book: Book
    position: int = 0
    reading_time: int = 0
    last_read_at: Optional[float] = None


@dataclass
class PublicBookListItem:
    book: Book
    owner_username: str


@dataclass
class BookPage:
    total: int
    books: list = field(default_factory=list)  # BookListItem or PublicBookListItem
