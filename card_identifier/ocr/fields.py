"""Rule-based extraction of name, number, set and HP from OCR candidates.

Each candidate string is scored independently for every field; the highest
score per field wins and ties keep the earliest candidate. Values are trimmed
candidates or substrings of them (an abbreviation, the name before "HP 60"),
so every chosen value appears in the input pool.
"""

from typing import Iterable, List, Optional, Sequence, Tuple, Union

from ..core.constants import (
    CARD_TERMS,
    HP_SCORE,
    KNOWN_NAME_CONTAINS_BONUS,
    KNOWN_NAME_EXACT_BONUS,
    KNOWN_NAME_VARIANT_BONUS,
    KNOWN_POKEMON_NAMES,
    KNOWN_SET_NAMES,
    MIN_CANDIDATE_LENGTH,
    NAME_SUFFIXES,
    NUMBER_SCORE,
    POKEMON_TYPES,
    SET_NAME_SCORE,
    SET_SEEDED_SCORE,
    TEMPLATE_KEYWORDS,
)
from ..core.types import ExtractedFields, TextCandidate
from ..utils.error_handler import NoFieldsExtracted
from ..utils.log import get_logger
from .regexes import (
    COLLECTOR_NUMBER_PATTERN,
    NAME_HP_PATTERN,
    SET_ABBREVIATION_PATTERN,
    abbreviation_adjacent_to_number,
    parse_hp,
)

logger = get_logger(__name__)

Candidate = Union[str, TextCandidate]


class _Best:
    """Running maximum; a later candidate must strictly beat the current score."""

    def __init__(self):
        self.value: Optional[str] = None
        self.score = 0

    def offer(self, value: str, score: int):
        if score > 0 and (self.value is None or score > self.score):
            self.value = value
            self.score = score


def score_name(text: str) -> int:
    """Name likelihood of a trimmed string; 0 means "not a name"."""
    if "/" in text or text.lower() in TEMPLATE_KEYWORDS:
        return 0
    if any(term in text for term in POKEMON_TYPES):
        return 0
    if any(term in text for term in CARD_TERMS):
        return 0

    score = 0
    if 4 <= len(text) <= 20:
        score += 2
    if text[0].isupper():
        score += 2
    if not any(ch.isdigit() for ch in text):
        score += 1
    if " " in text:
        score += 1
    if text.endswith(NAME_SUFFIXES):
        score += 3
    if text == text.upper() and len(text) > 3:
        score -= 1
    return max(score, 0)


def known_name_bonus(text: str, known_names: Sequence[str]) -> int:
    """Extra name score for strings that are, or contain, a frequently scanned name."""
    bonus = 0
    for known in known_names:
        if text == known:
            bonus = max(bonus, KNOWN_NAME_EXACT_BONUS)
        elif text in (known + suffix for suffix in NAME_SUFFIXES):
            return KNOWN_NAME_VARIANT_BONUS
        elif known in text:
            bonus = max(bonus, KNOWN_NAME_CONTAINS_BONUS)
    return bonus


def score_sets(text: str) -> List[Tuple[str, int]]:
    """Set guesses in a string: abbreviations and full set names with their scores."""
    guesses = []
    for match in SET_ABBREVIATION_PATTERN.finditer(text):
        abbr = match.group(1)
        score = 1
        if text == abbr:
            score += 2
        if text[match.end():].lstrip()[:1].isdigit():
            score += 2
        guesses.append((abbr, score))

    for set_name in KNOWN_SET_NAMES:
        if set_name in text:
            guesses.append((set_name, SET_NAME_SCORE))
    return guesses


def extract_fields(
    candidates: Iterable[Candidate],
    known_names: Sequence[str] = KNOWN_POKEMON_NAMES,
) -> ExtractedFields:
    """Pick the best name, number, set and HP from a candidate pool.

    Args:
        candidates: OCR strings or ``TextCandidate`` objects
        known_names: names whose presence raises a name candidate's score;
            pass ``()`` to rank names on their own shape only

    Raises:
        NoFieldsExtracted: if no field could be determined (including an empty pool)
    """
    name, number, card_set, hp = _Best(), _Best(), _Best(), _Best()
    count = 0

    for candidate in candidates:
        text = candidate.cleaned if isinstance(candidate, TextCandidate) else str(candidate).strip()
        if len(text) < MIN_CANDIDATE_LENGTH:
            continue
        count += 1

        number_match = COLLECTOR_NUMBER_PATTERN.search(text)
        if number_match:
            number.offer(number_match.group(0), NUMBER_SCORE)
            seeded = abbreviation_adjacent_to_number(text)
            if seeded:
                card_set.offer(seeded, SET_SEEDED_SCORE)

        hp_value = parse_hp(text)
        if hp_value:
            hp.offer(hp_value, HP_SCORE)

        name_hp = NAME_HP_PATTERN.search(text)
        for name_text in (text, name_hp.group(1).strip() if name_hp else None):
            if not name_text:
                continue
            score = score_name(name_text)
            if score > 0:
                score += known_name_bonus(name_text, known_names)
            name.offer(name_text, score)

        for guess, score in score_sets(text):
            card_set.offer(guess, score)

    fields = ExtractedFields(
        name=name.value,
        number=number.value,
        set=card_set.value,
        hp=hp.value,
        scores={
            key: best.score
            for key, best in (("name", name), ("number", number), ("set", card_set), ("hp", hp))
            if best.value is not None
        },
    )

    if fields.is_empty:
        raise NoFieldsExtracted(details={"candidates": count})

    logger.debug("Fields extracted", candidates=count, **fields.as_dict())
    return fields
