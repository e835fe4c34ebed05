"""Tests for OCR regex functionality."""

import pytest

from card_identifier.ocr.regexes import (
    COLLECTOR_NUMBER_PATTERN,
    NAME_HP_PATTERN,
    SET_ABBREVIATION_PATTERN,
    abbreviation_adjacent_to_number,
    collector_numerator,
    parse_hp,
)


class TestCollectorNumberRegex:
    """Test collector number pattern extraction."""

    @pytest.mark.parametrize(
        "text,num,den",
        [
            ("25/102", 25, 102),
            ("4/102", 4, 102),
            ("Card 25/102 Rare", 25, 102),
            ("SV01 123/198", 123, 198),
            ("007/198", 7, 198),
        ],
    )
    def test_valid_collector_numbers(self, text, num, den):
        match = COLLECTOR_NUMBER_PATTERN.search(text)
        assert (int(match.group(1)), int(match.group(2))) == (num, den)

    @pytest.mark.parametrize("text", ["", "Pikachu", "25 of 102", "/102", "25/"])
    def test_invalid_collector_numbers(self, text):
        assert COLLECTOR_NUMBER_PATTERN.search(text) is None

    def test_match_is_substring(self):
        assert COLLECTOR_NUMBER_PATTERN.search("No. 044/185 ").group(0) == "044/185"

    @pytest.mark.parametrize(
        "number,expected",
        [("007/198", "7"), ("123/198", "123"), ("58", "58"), ("000/100", "0"), ("", "")],
    )
    def test_collector_numerator(self, number, expected):
        assert collector_numerator(number) == expected


class TestHP:
    @pytest.mark.parametrize(
        "text,expected",
        [("HP 310", "310"), ("hp120", "120"), ("Basic HP  60", "60"), ("310", None), ("HP", None)],
    )
    def test_parse_hp(self, text, expected):
        assert parse_hp(text) == expected

    @pytest.mark.parametrize(
        "text,name,hp",
        [
            ("Pikachu HP 60", "Pikachu", "60"),
            ("Pikachu VMAX hp310", "Pikachu VMAX", "310"),
            ("Stage 1 Raichu HP 90", "Raichu", "90"),
            ("Farfetch'd HP 70", "Farfetch'd", "70"),
        ],
    )
    def test_name_before_hp(self, text, name, hp):
        match = NAME_HP_PATTERN.search(text)
        assert (match.group(1), match.group(2)) == (name, hp)

    @pytest.mark.parametrize("text", ["HP 310", "hp120", "Pikachu"])
    def test_no_name_before_hp(self, text):
        assert NAME_HP_PATTERN.search(text) is None


class TestSetAbbreviations:
    def test_longest_abbreviation_wins(self):
        assert SET_ABBREVIATION_PATTERN.search("SWSH045").group(1) == "SWSH"

    def test_abbreviation_glued_to_letters_ignored(self):
        assert SET_ABBREVIATION_PATTERN.search("SVEN") is None
        assert SET_ABBREVIATION_PATTERN.search("EXTRA") is None

    def test_adjacent_before_number(self):
        assert abbreviation_adjacent_to_number("SV01 123/198") == "SV"

    def test_adjacent_after_number(self):
        assert abbreviation_adjacent_to_number("21/73 SM") == "SM"

    def test_not_adjacent(self):
        assert abbreviation_adjacent_to_number("SV Pikachu 123/198") is None
        assert abbreviation_adjacent_to_number("SV01") is None
