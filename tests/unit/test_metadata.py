"""Tests for line item metadata parsing (costing_kernel/domain/metadata.py)."""

from datetime import date

import pytest

from costing_kernel.domain.metadata import parse_metadata, serialize_metadata


class TestParseMetadata:
    def test_object(self):
        assert parse_metadata('{"contact": "Ana", "rooms": 3}') == {
            "contact": "Ana",
            "rooms": 3,
        }

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_empty_input(self, raw):
        assert parse_metadata(raw) == {}

    def test_malformed_json_is_empty_and_logged(self, captured_logs):
        assert parse_metadata("{broken") == {}
        warnings = [r for r in captured_logs() if r["message"] == "metadata_parse_failed"]
        assert warnings[0]["level"] == "WARNING"
        assert warnings[0]["raw_length"] == 7

    @pytest.mark.parametrize("raw", ["[1, 2]", '"text"', "42", "null"])
    def test_non_object_is_empty(self, raw):
        assert parse_metadata(raw) == {}


class TestSerializeMetadata:
    def test_none_stays_none(self):
        assert serialize_metadata(None) is None

    def test_keys_sorted(self):
        assert serialize_metadata({"b": 1, "a": 2}) == '{"a": 2, "b": 1}'

    def test_non_json_values_become_strings(self):
        assert serialize_metadata({"due": date(2024, 7, 1)}) == '{"due": "2024-07-01"}'
