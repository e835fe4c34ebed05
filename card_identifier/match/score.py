"""
Relevance scoring of catalog records against extracted card fields.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional, Sequence

from rapidfuzz import fuzz

from ..core.constants import (
    RECENT_SET_WINDOW_DAYS,
    SCORE_EXACT_NAME,
    SCORE_EXACT_NUMBER,
    SCORE_HP_MATCH,
    SCORE_NAME_TOKENS_MAX,
    SCORE_PARTIAL_NAME,
    SCORE_RECENT_SET,
    SCORE_SET_MATCH,
    TOKEN_MATCH_CUTOFF,
)
from ..core.types import CatalogRecord, ExtractedFields, QueryLayer, ScoredMatch
from ..ocr.regexes import collector_numerator

RELEASE_DATE_FORMATS = ("%Y/%m/%d", "%Y-%m-%d")


@dataclass(frozen=True)
class ScoreWeights:
    """Tunable relevance weights."""

    exact_name: int = SCORE_EXACT_NAME
    partial_name: int = SCORE_PARTIAL_NAME
    exact_number: int = SCORE_EXACT_NUMBER
    set_match: int = SCORE_SET_MATCH
    hp_match: int = SCORE_HP_MATCH
    recent_set: int = SCORE_RECENT_SET
    name_tokens_max: int = SCORE_NAME_TOKENS_MAX
    recent_window_days: int = RECENT_SET_WINDOW_DAYS


DEFAULT_WEIGHTS = ScoreWeights()


def clean_name(name: str) -> str:
    """Keep letters, digits and single spaces (catalog query safe)."""
    return " ".join(re.sub(r"[^\w\s]|_", "", name).split())


def parse_release_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    for fmt in RELEASE_DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None


def set_matches(record: CatalogRecord, card_set: str) -> bool:
    """A set guess matches the record's set id, PTCGO code or name.

    An abbreviation also matches ids of the same series ("SV" ~ "sv4").
    """
    guess = card_set.strip().lower()
    if not guess:
        return False
    set_id = record.set_id.lower()
    if guess in (set_id, (record.set_ptcgo_code or "").lower(), record.set_name.lower()):
        return True
    return set_id.startswith(guess) and set_id[len(guess):len(guess) + 1].isdigit()


def name_token_fraction(record_name: str, name: str) -> float:
    """Fraction of the name's tokens found in the record name, tolerant to small OCR slips."""
    tokens = clean_name(name).lower().split()
    if not tokens:
        return 0.0
    target = record_name.lower()
    matched = sum(
        1 for token in tokens if token in target or fuzz.partial_ratio(token, target) >= TOKEN_MATCH_CUTOFF
    )
    return matched / len(tokens)


def score_record(
    record: CatalogRecord,
    fields: ExtractedFields,
    layer: QueryLayer,
    today: date,
    token_query: bool = False,
    weights: ScoreWeights = DEFAULT_WEIGHTS,
) -> int:
    """Integer relevance of one record for the layer that returned it."""
    score = 0

    if fields.name:
        name = clean_name(fields.name).lower()
        record_name = record.name.lower()
        if name and record_name == name:
            score += weights.exact_name
        elif name and name in record_name:
            score += weights.partial_name
        if token_query:
            score += int(name_token_fraction(record.name, fields.name) * weights.name_tokens_max)

    if fields.number and record.number:
        if collector_numerator(fields.number) == collector_numerator(record.number):
            score += weights.exact_number

    if fields.set and set_matches(record, fields.set):
        score += weights.set_match

    # HP is only weighed where HP was the query
    if layer == QueryLayer.HP and fields.hp and record.hp:
        if record.hp.strip() == fields.hp.strip():
            score += weights.hp_match

    released = parse_release_date(record.set_release_date)
    if released is not None and 0 <= (today - released).days <= weights.recent_window_days:
        score += weights.recent_set

    return score


def rank(matches: Sequence[ScoredMatch]) -> List[ScoredMatch]:
    """Descending score, ties by card id."""
    return sorted(matches, key=lambda m: m.sort_key)
