"""
Script detection for translation input.

Only the parts of a message written in the source language's alphabet are
sent to a backend. Everything else (latin words, links, emoji, punctuation
between runs) is passed through verbatim and in place.
"""
from dataclasses import dataclass
from itertools import groupby
from typing import Dict, List, Optional, Tuple

CJK_RANGES = (
    (0x4E00, 0x9FFF),   # CJK Unified Ideographs
    (0x3400, 0x4DBF),   # CJK Extension A
    (0xF900, 0xFAFF),   # CJK Compatibility Ideographs
)

SCRIPT_RANGES: Dict[str, Tuple[Tuple[int, int], ...]] = {
    "zh": CJK_RANGES,
    "ja": CJK_RANGES + (
        (0x3040, 0x309F),   # Hiragana
        (0x30A0, 0x30FF),   # Katakana
    ),
    "ko": (
        (0xAC00, 0xD7AF),   # Hangul Syllables
        (0x1100, 0x11FF),   # Hangul Jamo
        (0x3130, 0x318F),   # Hangul Compatibility Jamo
    ),
    "ru": (
        (0x0400, 0x04FF),   # Cyrillic
    ),
}


@dataclass(frozen=True)
class Segment:
    text: str
    in_script: bool


def script_ranges(lang: Optional[str]) -> Optional[Tuple[Tuple[int, int], ...]]:
    """Return code point ranges for a language code such as ``zh`` or ``zh-CN``."""
    if not lang:
        return None
    base = lang.strip().lower().replace("_", "-").split("-")[0]
    return SCRIPT_RANGES.get(base)


def is_script_char(char: str, ranges: Tuple[Tuple[int, int], ...]) -> bool:
    code = ord(char)
    return any(low <= code <= high for low, high in ranges)


def contains_script(text: str, lang: Optional[str]) -> bool:
    """True if any character of ``text`` belongs to the language's script.

    Languages without a known script are treated as always matching.
    """
    ranges = script_ranges(lang)
    if ranges is None:
        return bool(text)
    return any(is_script_char(char, ranges) for char in text)


def split_segments(text: str, lang: Optional[str]) -> List[Segment]:
    """Split text into maximal runs of in-script and out-of-script characters."""
    if not text:
        return []
    ranges = script_ranges(lang)
    if ranges is None:
        return [Segment(text, True)]
    return [
        Segment("".join(chars), in_script)
        for in_script, chars in groupby(text, key=lambda c: is_script_char(c, ranges))
    ]
