"""Sibling ordering for manifest nodes.

Curators force a manual order by prefixing names with a circled number
("①".."⑳") or a run of ASCII digits ("1_", "02 "). Everything else follows
in natural order, approximating Japanese collation at base strength:
width, case, accents and kana type are ignored and digit runs compare by
value.
"""

from __future__ import annotations

import math
import re
import unicodedata
from functools import cmp_to_key
from typing import Iterable, List, Tuple, TypeVar

CIRCLED_ONE = 0x2460
CIRCLED_TWENTY = 0x2473

_LEADING_DIGITS = re.compile(r"^[0-9]+")
_DIGIT_RUNS = re.compile(r"([0-9]+)")
# Katakana ァ..ヶ map onto hiragana ぁ..ゖ at a fixed offset
_KATAKANA_TO_HIRAGANA = {cp: cp - 0x60 for cp in range(0x30A1, 0x30F7)}

T = TypeVar("T")


def leading_number_weight(name: str | None) -> float:
    if not name:
        return math.inf
    trimmed = name.strip()
    if not trimmed:
        return math.inf
    first = ord(trimmed[0])
    if CIRCLED_ONE <= first <= CIRCLED_TWENTY:
        return first - CIRCLED_ONE + 1
    match = _LEADING_DIGITS.match(trimmed)
    if match:
        return int(match.group(0))
    return math.inf


def _fold(text: str) -> str:
    text = unicodedata.normalize("NFKC", text).casefold()
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.translate(_KATAKANA_TO_HIRAGANA)


def collation_key(name: str) -> Tuple[Tuple[int, int, str], ...]:
    """Natural-order key: digit runs by value, text runs folded."""
    parts = []
    for i, chunk in enumerate(_DIGIT_RUNS.split(_fold(name))):
        if not chunk:
            continue
        if i % 2:
            parts.append((0, int(chunk), ""))
        else:
            parts.append((1, 0, chunk))
    return tuple(parts)


def compare_names(a: str, b: str) -> int:
    weight_a = leading_number_weight(a)
    weight_b = leading_number_weight(b)
    if weight_a != weight_b:
        return -1 if weight_a < weight_b else 1
    key_a = collation_key(a)
    key_b = collation_key(b)
    if key_a != key_b:
        return -1 if key_a < key_b else 1
    # Collation-equal names ("A" vs "a") still need a deterministic order
    if a != b:
        return -1 if a < b else 1
    return 0


def compare_entries(a, b) -> int:
    """Comparator over anything with a ``name`` attribute."""
    return compare_names(a.name, b.name)


def sort_entries(entries: Iterable[T]) -> List[T]:
    return sorted(entries, key=cmp_to_key(compare_entries))


__all__ = [
    "collation_key",
    "compare_entries",
    "compare_names",
    "leading_number_weight",
    "sort_entries",
]
