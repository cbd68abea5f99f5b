"""Chapter number lookup for heading lines."""

from __future__ import annotations

import re
from typing import Optional

from .numerals import parse_cjk_numeral

UNIT_WORDS = "章节卷集部篇"
CN_NUMERAL_CHARS = "零〇一二两三四五六七八九十百千万壹贰叁肆伍陆柒捌玖拾佰仟"

_ARABIC_RE = re.compile(rf"第?\s*(\d+)\s*[{UNIT_WORDS}]")
_CJK_RE = re.compile(rf"第\s*([{CN_NUMERAL_CHARS}]+)\s*[{UNIT_WORDS}]")


def extract_chapter_number(title: str) -> Optional[int]:
    """Return the number in a heading like "第12章" or "第十二章", else None."""
    m = _ARABIC_RE.search(title)
    if m:
        return int(m.group(1))

    m = _CJK_RE.search(title)
    if m:
        return parse_cjk_numeral(m.group(1))

    return None
