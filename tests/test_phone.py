from __future__ import annotations

import pytest

from dnc_checker.phone import (
    INVALID_AREA_CODE,
    INVALID_FORMAT,
    SAMPLE_NUMBERS,
    format_number,
    normalize_numbers,
    parse_numbers,
    validate_number,
)


def test_normalize_numbers_canonicalises_and_dedupes() -> None:
    text = "(212)555-0100, 12125550100\n+1-212-555-0101   415.555.0199"

    assert normalize_numbers(text) == ["+12125550100", "+12125550101", "+14155550199"]


def test_normalize_numbers_preserves_first_seen_order() -> None:
    assert normalize_numbers("4155550199 2125550100 415-555-0199") == ["+14155550199", "+12125550100"]


def test_normalize_numbers_returns_empty_for_blank_text() -> None:
    assert normalize_numbers("") == []
    assert normalize_numbers("  \n\t , ") == []


def test_tokens_without_digits_are_skipped() -> None:
    assert normalize_numbers("abc, 2125550100, ---") == ["+12125550100"]


def test_non_us_tokens_are_kept_for_validation() -> None:
    assert normalize_numbers("555 +44123") == ["555", "+44123"]


@pytest.mark.parametrize(
    "token, expected",
    [
        ("2125550100", "+12125550100"),
        ("12125550100", "+12125550100"),
        ("+12125550100", "+12125550100"),
        ("22125550100", "22125550100"),
        ("+442071234567", "+442071234567"),
    ],
)
def test_format_number(token: str, expected: str) -> None:
    assert format_number(token) == expected


def test_parse_numbers_splits_on_commas_whitespace_and_newlines() -> None:
    assert parse_numbers("a,b\nc d\t\te") == ["a", "b", "c", "d", "e"]


def test_validate_number_accepts_canonical_us_numbers() -> None:
    outcome = validate_number("+12125550100")

    assert outcome.valid
    assert outcome.reason is None


@pytest.mark.parametrize("candidate", ["555", "+44123", "+1212555010", "+121255501000", "12125550100", ""])
def test_validate_number_rejects_bad_format(candidate: str) -> None:
    outcome = validate_number(candidate)

    assert not outcome.valid
    assert outcome.reason == INVALID_FORMAT


@pytest.mark.parametrize("candidate", ["+10005550100", "+11995550100"])
def test_validate_number_rejects_low_area_codes(candidate: str) -> None:
    outcome = validate_number(candidate)

    assert not outcome.valid
    assert outcome.reason == INVALID_AREA_CODE


def test_validate_number_area_code_boundaries() -> None:
    assert validate_number("+12005550100").valid
    assert validate_number("+19995550100").valid


def test_validate_number_rejects_trailing_newline() -> None:
    assert validate_number("+12125550100\n").reason == INVALID_FORMAT


def test_sample_numbers() -> None:
    assert len(SAMPLE_NUMBERS) == 10
    assert SAMPLE_NUMBERS[0] == "+12345678901"
    assert SAMPLE_NUMBERS[-1] == "+12345678910"
    assert all(validate_number(number).valid for number in SAMPLE_NUMBERS)


def test_normalize_numbers_is_idempotent() -> None:
    once = normalize_numbers("2125550100, 1-415-555-0199 555 (212)555-0100 +44123")

    assert normalize_numbers("\n".join(once)) == once
