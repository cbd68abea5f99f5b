"""Split plain book text into chapters.

Chapter 0 is always the first non-empty line (usually the book or author
line). After that, any line that looks like a heading starts a chapter.
Offsets are character indices into the text, the same unit content reads
use, so a chapter never starts in the middle of a multi-byte character.
"""

from __future__ import annotations

import logging
import re
from typing import Iterator

from lectern.library.models import Chapter

from .chapter_number import CN_NUMERAL_CHARS, extract_chapter_number

log = logging.getLogger(__name__)

STRUCTURAL_KEYWORDS = (
    "序章",
    "序言",
    "卷首语",
    "扉页",
    "楔子",
    "正文(?![完结])",
    "终章",
    "后记",
    "尾声",
    "番外",
)

# Unit words with the follow-ups that turn them into ordinary vocabulary
# (节课, 集合, 部分, 篇张 ...).
_UNIT = r"(?:章|节(?!课)|卷|集(?![合和])|部(?![分赛游])|篇(?!张))"
_NUMBERED = rf"第?\s{{0,4}}[\d{CN_NUMERAL_CHARS}]+?\s{{0,4}}{_UNIT}"

# Anything longer than 30 characters after the marker is body text.
MAX_TITLE_TAIL = 30

HEADING_RE = re.compile(
    rf"(?:{'|'.join(STRUCTURAL_KEYWORDS)}|{_NUMBERED}).{{0,{MAX_TITLE_TAIL}}}"
)


def is_heading(line: str) -> bool:
    return HEADING_RE.fullmatch(line.strip()) is not None


def iter_lines(text: str) -> Iterator[tuple[int, str]]:
    """Yield (character offset, line) for every line, terminator removed."""
    offset = 0
    for line in text.split("\n"):
        yield offset, line
        offset += len(line) + 1


def segment_text(text: str, fallback_title: str = "") -> list[Chapter]:
    """Return the ordered chapter list for ``text``. Never raises."""
    chapters: list[Chapter] = []

    for offset, raw in iter_lines(text):
        line = raw.strip()
        if not line:
            continue
        if chapters and not is_heading(line):
            continue
        chapters.append(
            Chapter(
                index=len(chapters),
                title=line,
                offset=offset,
                number=extract_chapter_number(line),
            )
        )

    if not chapters:
        chapters.append(Chapter(index=0, title=fallback_title, offset=0))

    log.debug("segmented %d chars into %d chapters", len(text), len(chapters))
    return chapters
