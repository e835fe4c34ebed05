"""Regex patterns for Pokemon card text extraction."""

import re
from typing import Optional

from ..core.constants import SET_ABBREVIATIONS

# Printed collector number, e.g. "123/185" or "SV01 123/198"
COLLECTOR_NUMBER_PATTERN = re.compile(r"(\d+)/(\d+)")

HP_PATTERN = re.compile(r"HP\s*(\d+)", re.IGNORECASE)

# Name printed on the same line as its HP, e.g. "Pikachu VMAX HP 310"
NAME_HP_PATTERN = re.compile(r"([A-Z][A-Za-z'.\- ]*?[A-Za-z])\s+(?i:HP)\s*(\d+)")

# Longest abbreviations first so "SWSH" wins over "SW"-style prefixes
_ABBREVIATION_ALTERNATION = "|".join(
    re.escape(abbr) for abbr in sorted(SET_ABBREVIATIONS, key=len, reverse=True)
)

# Abbreviation not glued to other letters ("SV" in "SV01" but not in "SVEN")
SET_ABBREVIATION_PATTERN = re.compile(
    rf"(?<![A-Za-z])({_ABBREVIATION_ALTERNATION})(?![A-Za-z])"
)


def collector_numerator(number: str) -> str:
    """Numerator of an ``n/total`` number without leading zeros ("007/198" -> "7")."""
    head = number.split("/", 1)[0].strip()
    stripped = head.lstrip("0")
    return stripped or ("0" if head else "")


def parse_hp(text: str) -> Optional[str]:
    """Digits of an ``HP 310`` style reading."""
    match = HP_PATTERN.search(text)
    return match.group(1) if match else None


def abbreviation_adjacent_to_number(text: str) -> Optional[str]:
    """Set abbreviation token directly before or after the collector number.

    Returns the abbreviation itself (``"SV"`` for ``"SV01 123/198"``), or None.
    """
    match = COLLECTOR_NUMBER_PATTERN.search(text)
    if not match:
        return None

    before = text[:match.start()].split()
    after = text[match.end():].split()
    neighbours = ([before[-1]] if before else []) + ([after[0]] if after else [])

    for token in neighbours:
        match = SET_ABBREVIATION_PATTERN.match(token)
        if match:
            return match.group(1)
    return None
