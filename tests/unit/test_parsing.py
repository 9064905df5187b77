"""Unit tests for shared configuration parsing helpers."""

import pytest

from storyvoice.parsing import (
    normalize_choice,
    normalize_optional_string,
    parse_permissive_boolean,
    parse_positive_float,
    parse_positive_int,
    parse_required_boolean,
)


def test_normalize_optional_string_handles_blank_values() -> None:
    """Normalization should return `None` for `None` and blank textual values."""

    assert normalize_optional_string(None) is None
    assert normalize_optional_string("") is None
    assert normalize_optional_string("   ") is None
    assert normalize_optional_string("  value  ") == "value"
    assert normalize_optional_string(42) == "42"


@pytest.mark.parametrize(
    ("token", "expected"),
    [("TrUe", True), ("  ON ", True), ("YeS", True), ("FALSE", False), (" oFf ", False), ("nO", False)],
)
def test_parse_permissive_boolean_accepts_mixed_case_tokens(token: str, expected: bool) -> None:
    """Permissive parsing should accept valid tokens case-insensitively."""

    assert parse_permissive_boolean(token) is expected


@pytest.mark.parametrize("value", ["", "   ", "maybe", "2", object()])
def test_parse_permissive_boolean_returns_none_for_invalid_tokens(value: object) -> None:
    """Permissive parsing should return `None` for invalid or blank inputs."""

    assert parse_permissive_boolean(value) is None


def test_parse_required_boolean_names_the_field() -> None:
    """Strict parsing should raise with the offending field name."""

    assert parse_required_boolean(True, "include_quality_analysis") is True
    with pytest.raises(ValueError, match="`include_quality_analysis` must be a boolean"):
        parse_required_boolean("sometimes", "include_quality_analysis")


@pytest.mark.parametrize("value", [0, -3, "0", "abc", True, None])
def test_parse_positive_int_rejects_non_positive_values(value: object) -> None:
    """Only strictly positive integers are accepted."""

    with pytest.raises(ValueError, match="`threshold` must be a positive integer."):
        parse_positive_int(value, "threshold")


def test_parse_positive_numbers_accept_strings() -> None:
    """Numeric strings are accepted for integer and float fields."""

    assert parse_positive_int(" 7 ", "threshold") == 7
    assert parse_positive_float("2.5", "timeout") == 2.5
    with pytest.raises(ValueError, match="`timeout` must be a positive number."):
        parse_positive_float("-1", "timeout")


def test_normalize_choice_is_case_insensitive_and_lists_choices() -> None:
    """Choices normalize to lower case and errors list the accepted values."""

    assert normalize_choice(" Narrator ", "mode", {"narrator", "multi-voice"}) == "narrator"
    with pytest.raises(ValueError, match="`mode` must be one of `multi-voice`, `narrator`; got `chorus`."):
        normalize_choice("chorus", "mode", {"narrator", "multi-voice"})
