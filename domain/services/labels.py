from __future__ import annotations

import re
from collections.abc import Sequence
from enum import Enum
from functools import reduce

_NUMBER_RE = re.compile(r"^\d+$", re.ASCII)
_LETTERS_RE = re.compile(r"^[a-z]+$", re.IGNORECASE | re.ASCII)

ALPHABET_SIZE = 26


class LabelType(str, Enum):
    NUMBER = "number"
    TEXT = "text"


def get_label_type(label: str | None) -> LabelType | None:
    trimmed = (label or "").strip()
    if not trimmed:
        return None
    if _NUMBER_RE.match(trimmed):
        return LabelType.NUMBER
    return LabelType.TEXT


def letter_position(letter: str) -> int:
    return ord(letter.upper()) - ord("A") + 1


def combine_labels(labels: Sequence[str]) -> str | None:
    cleaned = [label.strip() for label in labels if label and label.strip()]
    if not cleaned:
        return None
    if len(cleaned) == 1:
        return cleaned[0]
    first, second = cleaned[0], cleaned[1]
    first_type = get_label_type(first)
    if first_type is None or first_type != get_label_type(second):
        return None
    if first_type is LabelType.NUMBER:
        return str(int(first) + int(second))
    return f"{first}{second}"


def convert_label(label: str) -> str:
    trimmed = label.strip()
    if not trimmed:
        return label
    if _LETTERS_RE.match(trimmed):
        positions = [letter_position(letter) for letter in trimmed]
        return str(reduce(lambda acc, value: acc * value, positions, 1))
    if _NUMBER_RE.match(trimmed):
        value = int(trimmed)
        if 1 <= value <= ALPHABET_SIZE:
            return chr(ord("A") + value - 1)
    return label
