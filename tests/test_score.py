"""Tests for relevance scoring of catalog records."""

from datetime import date

import pytest

from card_identifier.core.types import ExtractedFields, QueryLayer, ScoredMatch
from card_identifier.match.score import (
    ScoreWeights,
    clean_name,
    name_token_fraction,
    parse_release_date,
    rank,
    score_record,
    set_matches,
)

TODAY = date(2024, 6, 1)


class TestScoreRecord:
    """Test the scoring table."""

    def test_exact_name(self, make_record):
        record = make_record("base1-58", "Pikachu")
        fields = ExtractedFields(name="Pikachu")
        assert score_record(record, fields, QueryLayer.NAME, TODAY) == 10

    def test_exact_name_is_case_insensitive(self, make_record):
        record = make_record("base1-58", "PIKACHU")
        assert score_record(record, ExtractedFields(name="pikachu"), QueryLayer.NAME, TODAY) == 10

    def test_partial_name(self, make_record):
        record = make_record("swsh4-44", "Pikachu VMAX")
        assert score_record(record, ExtractedFields(name="Pikachu"), QueryLayer.NAME, TODAY) == 5

    def test_number_compares_numerator_without_leading_zeros(self, make_record):
        record = make_record("sv1-7", "Sprigatito", number="7")
        fields = ExtractedFields(number="007/198")
        assert score_record(record, fields, QueryLayer.NUMBER, TODAY) == 8

    def test_set_match(self, make_record):
        record = make_record("sv1-7", "Sprigatito", set_id="sv1")
        assert score_record(record, ExtractedFields(set="SV"), QueryLayer.NUMBER, TODAY) == 6

    def test_hp_only_counts_in_hp_layer(self, make_record):
        record = make_record("swsh4-44", "Pikachu VMAX", hp="310")
        fields = ExtractedFields(hp="310")
        assert score_record(record, fields, QueryLayer.HP, TODAY) == 4
        assert score_record(record, fields, QueryLayer.NAME, TODAY) == 0

    def test_recent_set_bonus(self, make_record):
        recent = make_record("sv4-1", "Pikachu", set_release_date="2023/11/03")
        old = make_record("base1-58", "Pikachu", set_release_date="1999/01/09")
        fields = ExtractedFields(name="Pikachu")
        assert score_record(recent, fields, QueryLayer.NAME, TODAY) == 13
        assert score_record(old, fields, QueryLayer.NAME, TODAY) == 10

    def test_combined_contributions(self, make_record):
        record = make_record("sv1-25", "Pikachu", number="25", set_id="sv1")
        fields = ExtractedFields(name="Pikachu", number="25/198", set="SV")
        assert score_record(record, fields, QueryLayer.COMBINED, TODAY) == 10 + 8 + 6

    def test_token_query_bonus(self, make_record):
        record = make_record("swsh4-44", "Pikachu VMAX")
        fields = ExtractedFields(name="Pikachu VMAX")
        # exact name 10 plus all tokens matched 10
        assert score_record(record, fields, QueryLayer.NAME, TODAY, token_query=True) == 20

    def test_custom_weights(self, make_record):
        record = make_record("base1-58", "Pikachu")
        weights = ScoreWeights(exact_name=1)
        assert score_record(record, ExtractedFields(name="Pikachu"), QueryLayer.NAME, TODAY, weights=weights) == 1


class TestHelpers:
    def test_clean_name(self):
        assert clean_name("  Pikachu-VMAX!! ") == "PikachuVMAX"
        assert clean_name("Mr. Mime") == "Mr Mime"

    @pytest.mark.parametrize("value", ["2023/03/31", "2023-03-31"])
    def test_parse_release_date_formats(self, value):
        assert parse_release_date(value) == date(2023, 3, 31)

    def test_parse_release_date_invalid(self):
        assert parse_release_date("March 2023") is None
        assert parse_release_date(None) is None

    def test_set_matches(self, make_record):
        record = make_record("swsh4-44", "Pikachu VMAX", set_id="swsh4", set_ptcgo_code="VIV", set_name="Vivid Voltage")
        assert set_matches(record, "SWSH")
        assert set_matches(record, "viv")
        assert set_matches(record, "Vivid Voltage")
        assert not set_matches(record, "SW")
        assert not set_matches(record, "SV")

    def test_name_token_fraction_tolerates_ocr_slip(self):
        assert name_token_fraction("Charizard GX", "Charizard GX") == 1.0
        assert name_token_fraction("Charizard GX", "Charlzard EX") == pytest.approx(0.5)

    def test_rank_ties_by_card_id(self, make_record):
        a = ScoredMatch(make_record("b-2", "X"), 5, QueryLayer.NAME)
        b = ScoredMatch(make_record("a-1", "X"), 5, QueryLayer.NAME)
        c = ScoredMatch(make_record("c-3", "X"), 9, QueryLayer.NAME)
        assert [m.record.card_id for m in rank([a, b, c])] == ["c-3", "a-1", "b-2"]
