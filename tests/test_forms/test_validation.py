"""Tests for per-field validation rules."""

import pytest

from stickyforms.core.models import NormalizedParameter
from stickyforms.forms.validation import (
    MSG_INVALID_EMAIL,
    MSG_INVALID_FORMAT,
    MSG_INVALID_NUMBER,
    MSG_INVALID_TEL,
    MSG_INVALID_URL,
    MSG_REQUIRED,
    MSG_SELECT_REQUIRED,
    SELECT_PLACEHOLDER,
    end_anchored,
    is_empty,
    parse_number,
    validate_field,
)


def make_param(param_type: str = "text", **kwargs) -> NormalizedParameter:
    kwargs.setdefault("name", "field")
    kwargs.setdefault("label", "Field")
    if param_type in ("select", "radio", "checkboxGroup"):
        kwargs.setdefault("options", [{"value": "a", "label": "A"}, {"value": "b", "label": "B"}])
    return NormalizedParameter(type=param_type, **kwargs)


class TestRequired:
    def test_required_empty(self) -> None:
        assert validate_field(make_param(required=True), "   ") == [MSG_REQUIRED]

    def test_optional_empty_skips_other_checks(self) -> None:
        parameter = make_param("email", validation={"pattern": "^x"})
        assert validate_field(parameter, "") == []

    def test_required_checkbox_must_be_checked(self) -> None:
        parameter = make_param("checkbox", required=True)

        assert validate_field(parameter, False) == [MSG_REQUIRED]
        assert validate_field(parameter, "false") == [MSG_REQUIRED]
        assert validate_field(parameter, True) == []

    def test_required_checkbox_group_needs_a_selection(self) -> None:
        assert validate_field(make_param("checkboxGroup", required=True), []) == [MSG_REQUIRED]


class TestSelectPlaceholder:
    """The placeholder option never counts as an answer for a required select."""

    @pytest.mark.parametrize("value", [SELECT_PLACEHOLDER, "", None])
    def test_required_select_unanswered(self, value) -> None:
        assert validate_field(make_param("select", required=True), value) == [MSG_SELECT_REQUIRED]

    def test_required_select_answered(self) -> None:
        assert validate_field(make_param("select", required=True), "a") == []

    def test_optional_select_with_placeholder_is_valid(self) -> None:
        parameter = make_param("select", validation={"pattern": "^[ab]$"})
        assert validate_field(parameter, SELECT_PLACEHOLDER) == []


class TestNumeric:
    def test_min_bound(self) -> None:
        parameter = make_param("number", validation={"min": 5})

        assert validate_field(parameter, "3") == ["El valor mínimo es 5"]
        assert validate_field(parameter, "10") == []

    def test_max_bound_with_decimal(self) -> None:
        parameter = make_param("range", validation={"max": 2.5})
        assert validate_field(parameter, 3) == ["El valor máximo es 2.5"]

    @pytest.mark.parametrize("value", ["abc", "nan", "inf", True])
    def test_not_a_finite_number(self, value) -> None:
        assert validate_field(make_param("percentage"), value) == [MSG_INVALID_NUMBER]

    def test_bounds_inclusive(self) -> None:
        parameter = make_param("number", validation={"min": 1, "max": 10})
        assert validate_field(parameter, "1") == []
        assert validate_field(parameter, 10.0) == []


class TestFormats:
    @pytest.mark.parametrize("value", ["ana@example.com", "a@b.co"])
    def test_valid_email(self, value: str) -> None:
        assert validate_field(make_param("email"), value) == []

    @pytest.mark.parametrize("value", ["not-an-email", "a@b", "a b@c.com"])
    def test_invalid_email(self, value: str) -> None:
        assert validate_field(make_param("email"), value) == [MSG_INVALID_EMAIL]

    def test_custom_message_for_format(self) -> None:
        parameter = make_param("email", validation={"message": "Usa tu email corporativo"})
        assert validate_field(parameter, "nope") == ["Usa tu email corporativo"]

    @pytest.mark.parametrize("value", ["+34 600 000 000", "(555) 123-4567"])
    def test_valid_tel(self, value: str) -> None:
        assert validate_field(make_param("tel"), value) == []

    def test_invalid_tel(self) -> None:
        assert validate_field(make_param("tel"), "call me") == [MSG_INVALID_TEL]

    def test_trailing_newline_fails_format(self) -> None:
        assert validate_field(make_param("email", required=True), "a@b.com\n") == [MSG_INVALID_EMAIL]
        assert validate_field(make_param("tel"), "600000000\n") == [MSG_INVALID_TEL]

    @pytest.mark.parametrize("value", ["https://example.com/path?q=1", "mailto:ana@example.com"])
    def test_valid_url(self, value: str) -> None:
        assert validate_field(make_param("url"), value) == []

    @pytest.mark.parametrize("value", ["example.com", "http://exa mple.com"])
    def test_invalid_url(self, value: str) -> None:
        assert validate_field(make_param("url"), value) == [MSG_INVALID_URL]


class TestLengthsAndCounts:
    def test_text_length(self) -> None:
        parameter = make_param(validation={"minLength": 3, "maxLength": 5})

        assert validate_field(parameter, "ab") == ["Mínimo 3 caracteres"]
        assert validate_field(parameter, "abcdef") == ["Máximo 5 caracteres"]
        assert validate_field(parameter, "abcd") == []

    def test_checkbox_group_selection_bounds(self) -> None:
        parameter = make_param("checkboxGroup", validation={"minSelected": 2, "maxSelected": 2})

        assert validate_field(parameter, ["a"]) == ["Selecciona al menos 2 opciones"]
        assert validate_field(parameter, ["a", "b", "c"]) == ["Selecciona como máximo 2 opciones"]
        assert validate_field(parameter, ["a", "b"]) == []

    def test_file_count(self) -> None:
        parameter = make_param("file", validation={"maxFiles": 1})
        assert validate_field(parameter, ["a.pdf", "b.pdf"]) == ["Máximo 1 archivos"]


class TestPattern:
    def test_pattern_failure_uses_message(self) -> None:
        parameter = make_param(validation={"pattern": "^[A-Z]{3}$", "message": "Tres mayúsculas"})

        assert validate_field(parameter, "abc") == ["Tres mayúsculas"]
        assert validate_field(parameter, "ABC") == []

    def test_pattern_fallback_message(self) -> None:
        assert validate_field(make_param(validation={"pattern": r"^\d+$"}), "12a") == [MSG_INVALID_FORMAT]

    def test_anchored_pattern_rejects_trailing_newline(self) -> None:
        parameter = make_param(validation={"pattern": r"^\d+$"})

        assert validate_field(parameter, "123\n") == [MSG_INVALID_FORMAT]
        assert validate_field(parameter, "123") == []

    def test_unanchored_pattern_matches_anywhere(self) -> None:
        assert validate_field(make_param(validation={"pattern": r"\d"}), "abc1") == []

    def test_pattern_runs_after_format(self) -> None:
        parameter = make_param("email", validation={"pattern": "@corp\\.com$", "message": "Solo corp"})

        assert validate_field(parameter, "bad") == ["Solo corp"]
        assert validate_field(parameter, "ana@gmail.com") == ["Solo corp"]
        assert validate_field(parameter, "ana@corp.com") == []

    def test_invalid_regex_is_ignored(self, caplog) -> None:
        assert validate_field(make_param(validation={"pattern": "(unclosed"}), "x") == []
        assert "Ignoring invalid validation pattern" in caplog.text


class TestHelpers:
    @pytest.mark.parametrize("value", [None, "", "  ", [], {}])
    def test_is_empty(self, value) -> None:
        assert is_empty(value) is True

    @pytest.mark.parametrize("value", [0, False, "0", ["a"]])
    def test_is_not_empty(self, value) -> None:
        assert is_empty(value) is False

    def test_parse_number(self) -> None:
        assert parse_number(" 4.5 ") == 4.5
        assert parse_number(7) == 7.0
        assert parse_number(None) is None
        assert parse_number("-.5e1") == -5.0

    @pytest.mark.parametrize("value", ["1_000", "inf", "nan", "١٢", "1e400", "0x10", "3 4"])
    def test_parse_number_rejects_non_decimal_text(self, value) -> None:
        assert parse_number(value) is None

    def test_digit_separator_is_not_a_number(self) -> None:
        assert validate_field(make_param("number"), "1_000") == [MSG_INVALID_NUMBER]

    @pytest.mark.parametrize(
        ("pattern", "expected"),
        [
            (r"^\d+$", r"^\d+\Z"),
            (r"price\$", r"price\$"),
            (r"^[$€]\d+$", r"^[$€]\d+\Z"),
            (r"(a|b$)c", r"(a|b\Z)c"),
        ],
    )
    def test_end_anchored(self, pattern: str, expected: str) -> None:
        assert end_anchored(pattern) == expected
