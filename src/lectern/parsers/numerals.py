"""Chinese numeral interpreter used for chapter numbering."""

from __future__ import annotations

from typing import Optional

# Common and formal (banker's) glyphs map to the same values.
CN_DIGITS: dict[str, int] = {
    "零": 0,
    "〇": 0,
    "一": 1,
    "壹": 1,
    "二": 2,
    "贰": 2,
    "两": 2,
    "三": 3,
    "叁": 3,
    "四": 4,
    "肆": 4,
    "五": 5,
    "伍": 5,
    "六": 6,
    "陆": 6,
    "七": 7,
    "柒": 7,
    "八": 8,
    "捌": 8,
    "九": 9,
    "玖": 9,
}

CN_UNITS: dict[str, int] = {
    "十": 10,
    "拾": 10,
    "百": 100,
    "佰": 100,
    "千": 1000,
    "仟": 1000,
}


def parse_cjk_numeral(text: str) -> Optional[int]:
    """Convert a run of Chinese numerals such as "二十三" to an int.

    Only the digit right before a unit multiplies it, so "十一" is 11 and
    "一百零五" is 105. Unrecognized characters are skipped. Returns None
    when nothing in ``text`` is a numeral.
    """
    total = 0
    pending = 0
    recognized = False

    for ch in text.strip():
        if ch in CN_DIGITS:
            pending = CN_DIGITS[ch]
            recognized = True
        elif ch in CN_UNITS:
            unit = CN_UNITS[ch]
            total += pending * unit if pending > 0 else unit
            pending = 0
            recognized = True

    if pending > 0:
        total += pending

    if not recognized and total == 0:
        return None
    return total
