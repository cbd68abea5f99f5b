"""Domain errors raised by the library and reading layers."""

from __future__ import annotations


class LecternError(Exception):
    """Base class for all Lectern errors."""


class NotFoundError(LecternError):
    """A referenced book, chapter or user does not exist."""


class ForbiddenError(LecternError):
    """The caller may not read or modify the referenced book."""


class ValidationError(LecternError, ValueError):
    """Input rejected before any state was changed."""
