"""Base parser interface for uploaded book files."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from lectern.errors import ValidationError
from lectern.library.models import BookContent


class BaseParser(ABC):
    """Abstract base for format-specific parsers."""

    SUPPORTED_EXTENSIONS: tuple[str, ...] = ()

    def __init__(self, max_bytes: Optional[int] = None) -> None:
        self.max_bytes = max_bytes

    @abstractmethod
    def parse(self, file_path: Path, owner_id: int) -> BookContent:
        """Parse a file and return structured book content."""

    @classmethod
    def can_handle(cls, file_path: Path) -> bool:
        return file_path.suffix.lower() in cls.SUPPORTED_EXTENSIONS


def get_parser(file_path: Path, max_bytes: Optional[int] = None) -> BaseParser:
    """Return the appropriate parser for a file."""
    from lectern.parsers.txt_parser import TxtParser

    parsers: list[type[BaseParser]] = [TxtParser]
    for parser_cls in parsers:
        if parser_cls.can_handle(file_path):
            return parser_cls(max_bytes=max_bytes)

    supported = []
    for p in parsers:
        supported.extend(p.SUPPORTED_EXTENSIONS)
    raise ValidationError(
        f"Unsupported format: {file_path.suffix}. Supported: {', '.join(supported)}"
    )
