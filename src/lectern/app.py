"""Lectern - plain text book library with cross-device reading sync."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

from lectern.config import AppConfig, load_config
from lectern.errors import LecternError
from lectern.parsers.base import get_parser

log = logging.getLogger(__name__)


def format_outline(file_path: Path, max_bytes: Optional[int] = None) -> list[str]:
    content = get_parser(file_path, max_bytes=max_bytes).parse(file_path, owner_id=0)
    lines = []
    for ch in content.chapters:
        number = "-" if ch.number is None else str(ch.number)
        lines.append(f"{ch.index:>4}  {ch.offset:>9}  {number:>5}  {ch.title}")
    return lines


def _setup_logging(config: AppConfig) -> None:
    handler = logging.FileHandler(config.log_path, encoding="utf-8")
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    root = logging.getLogger("lectern")
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)


def main(argv: Optional[list[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 1:
        print("usage: lectern FILE.txt", file=sys.stderr)
        return 2

    config = load_config()
    _setup_logging(config)

    file_path = Path(args[0]).expanduser().resolve()
    if not file_path.exists():
        print(f"File not found: {file_path}", file=sys.stderr)
        return 1

    try:
        lines = format_outline(file_path, max_bytes=config.max_upload_bytes)
    except LecternError as e:
        log.warning("outline of %s failed: %s", file_path, e)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for line in lines:
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
