"""Book lookup with ownership and visibility checks."""

from __future__ import annotations

from lectern.errors import ForbiddenError, NotFoundError

from .database import Database
from .models import Book


def require_book(db: Database, book_id: int) -> Book:
    book = db.get_book(book_id)
    if book is None:
        raise NotFoundError(f"Book {book_id} does not exist")
    return book


def require_readable(db: Database, user_id: int, book_id: int) -> Book:
    """Return the book if the user owns it or it is public."""
    book = require_book(db, book_id)
    if not book.readable_by(user_id):
        raise ForbiddenError(f"User {user_id} may not read book {book_id}")
    return book


def require_owned(db: Database, user_id: int, book_id: int) -> Book:
    book = require_book(db, book_id)
    if book.user_id != user_id:
        raise ForbiddenError(f"User {user_id} does not own book {book_id}")
    return book
