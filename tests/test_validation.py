"""Tests for query validation."""

from typing import List, Optional

import pytest
from fastapi_refine.config import RefineConfig
from fastapi_refine.exceptions import RefineValidationError
from fastapi_refine.validation import (
    filter_precognitive_rules,
    is_precognitive,
    precognition_success,
    validate,
    validate_only_keys,
)
from pydantic import Field


class TestValidate:
    """Tests for validate()."""

    def test_no_rules_accepts_anything(self):
        assert validate({"foo": "bar"}, {}) == {}

    def test_coerces_values(self):
        result = validate({"age": "30", "name": "Deadpond"}, {"age": int, "name": str})
        assert result == {"age": 30, "name": "Deadpond"}

    def test_defaults_for_missing_keys(self):
        result = validate({}, {"age": (Optional[int], None)})
        assert result == {"age": None}

    def test_field_constraints(self):
        rules = {"per-page": (int, Field(default=10, ge=1, le=100))}
        assert validate({"per-page": "20"}, rules) == {"per-page": 20}
        assert validate({}, rules) == {"per-page": 10}

        with pytest.raises(RefineValidationError) as exc_info:
            validate({"per-page": "500"}, rules)
        assert exc_info.value.errors()[0]["type"] == "less_than_equal"

    def test_hyphenated_keys(self):
        assert validate({"min-age": "18"}, {"min-age": int}) == {"min-age": 18}

    def test_list_values(self):
        assert validate({"ids": ["1", "2"]}, {"ids": List[int]}) == {"ids": [1, 2]}

    def test_extra_keys_are_ignored(self):
        assert validate({"age": "1", "other": "x"}, {"age": int}) == {"age": 1}

    def test_invalid_rule(self):
        with pytest.raises(ValueError, match="Rule for 'age'"):
            validate({"age": "1"}, {"age": (int, None, "extra")})

    def test_missing_required_key(self):
        with pytest.raises(RefineValidationError) as exc_info:
            validate({}, {"age": int})

        error = exc_info.value.errors()[0]
        assert error["type"] == "missing"
        assert error["loc"] == ("query", "age")

    def test_collects_every_error(self):
        with pytest.raises(RefineValidationError) as exc_info:
            validate({"age": "x", "score": "y"}, {"age": int, "score": float})

        assert [error["loc"] for error in exc_info.value.errors()] == [
            ("query", "age"),
            ("query", "score"),
        ]

    def test_location(self):
        with pytest.raises(RefineValidationError) as exc_info:
            validate({"age": "x"}, {"age": int}, location="filters")
        assert exc_info.value.errors()[0]["loc"] == ("filters", "age")

    def test_input_is_reported(self):
        with pytest.raises(RefineValidationError) as exc_info:
            validate({"age": "x"}, {"age": int})
        assert exc_info.value.errors()[0]["input"] == "x"


class TestMessages:
    """Tests for custom messages and attribute names."""

    def test_default_message(self):
        with pytest.raises(RefineValidationError) as exc_info:
            validate({"age": "x"}, {"age": int})
        assert "valid integer" in exc_info.value.errors()[0]["msg"]

    def test_message_by_key_and_type(self):
        messages = {"age.int_parsing": "{attribute} must be a number, got {input}."}

        with pytest.raises(RefineValidationError) as exc_info:
            validate({"age": "x"}, {"age": int}, messages)

        assert exc_info.value.errors()[0]["msg"] == "age must be a number, got x."

    def test_message_by_key(self):
        with pytest.raises(RefineValidationError) as exc_info:
            validate({"age": "x"}, {"age": int}, {"age": "Bad age."})
        assert exc_info.value.errors()[0]["msg"] == "Bad age."

    def test_message_by_type(self):
        with pytest.raises(RefineValidationError) as exc_info:
            validate({}, {"age": int}, {"missing": "The {attribute} field is required."})
        assert exc_info.value.errors()[0]["msg"] == "The age field is required."

    def test_key_and_type_message_takes_precedence(self):
        messages = {
            "missing": "generic",
            "age": "by key",
            "age.missing": "by key and type",
        }

        with pytest.raises(RefineValidationError) as exc_info:
            validate({}, {"age": int}, messages)

        assert exc_info.value.errors()[0]["msg"] == "by key and type"

    def test_attribute_in_message(self):
        with pytest.raises(RefineValidationError) as exc_info:
            validate(
                {},
                {"min-age": int},
                {"missing": "The {attribute} field is required."},
                {"min-age": "minimum age"},
            )
        assert exc_info.value.errors()[0]["msg"] == "The minimum age field is required."

    def test_attribute_prefixes_default_message(self):
        with pytest.raises(RefineValidationError) as exc_info:
            validate({}, {"min-age": int}, attributes={"min-age": "minimum age"})
        assert exc_info.value.errors()[0]["msg"] == "minimum age: Field required"

    def test_pydantic_message_placeholder(self):
        with pytest.raises(RefineValidationError) as exc_info:
            validate({}, {"age": int}, {"age": "[{attribute}] {msg}"})
        assert exc_info.value.errors()[0]["msg"] == "[age] Field required"

    @pytest.mark.parametrize(
        "message", ["Age must be in {0..120}, got {input}.", "{min} < {attribute}"]
    )
    def test_other_braces_are_kept(self, message):
        with pytest.raises(RefineValidationError) as exc_info:
            validate({"age": "x"}, {"age": int}, {"age": message})

        expected = message.replace("{input}", "x").replace("{attribute}", "age")
        assert exc_info.value.errors()[0]["msg"] == expected


class TestPrecognition:
    """Tests for precognition helpers."""

    @pytest.fixture
    def config(self):
        return RefineConfig()

    def test_is_precognitive(self, make_request, config):
        assert is_precognitive(make_request(headers={"Precognition": "true"}), config)
        assert is_precognitive(make_request(headers={"Precognition": "TRUE"}), config)
        assert not is_precognitive(make_request(headers={"Precognition": "false"}), config)
        assert not is_precognitive(make_request(), config)

    def test_custom_header(self, make_request):
        config = RefineConfig(precognition_header="X-Dry-Run")
        assert is_precognitive(make_request(headers={"X-Dry-Run": "true"}), config)
        assert not is_precognitive(make_request(headers={"Precognition": "true"}), config)

    def test_validate_only_keys(self, make_request, config):
        request = make_request(headers={"Precognition-Validate-Only": "foo, bar,,"})
        assert validate_only_keys(request, config) == ["foo", "bar"]
        assert validate_only_keys(make_request(), config) is None

    def test_filter_rules(self, make_request, config):
        rules = {"foo": int, "bar": int, "baz": int}
        request = make_request(headers={"Precognition-Validate-Only": "foo,baz"})

        assert filter_precognitive_rules(request, rules, config) == {"foo": int, "baz": int}

    def test_filter_rules_without_header_keeps_all(self, make_request, config):
        rules = {"foo": int, "bar": int}
        assert filter_precognitive_rules(make_request(), rules, config) == rules

    def test_success_response(self, config):
        exc = precognition_success(config)
        assert exc.status_code == 204
        assert exc.headers == {"Precognition-Success": "true"}

    def test_custom_success_header(self):
        exc = precognition_success(RefineConfig(success_header="X-Dry-Run-Passed"))
        assert exc.headers == {"X-Dry-Run-Passed": "true"}
