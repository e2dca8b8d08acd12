"""
Unit tests for provider payload ingestion.

Tests normalization of bad values and tolerant field mapping.
"""

import json
import math

import pytest

from ai_usage_attribution.ingest.reader import (
    load_activity_rows,
    load_category_totals,
    normalize_amount,
    parse_activity_row,
    parse_category_total
)


class TestNormalizeAmount:
    """Test numeric clamping."""

    @pytest.mark.parametrize("raw", [None, -1, -0.5, float("nan"), float("inf"), float("-inf"), "abc", True, [1]])
    def test_bad_values_become_zero(self, raw):
        """Verify out-of-range or malformed values clamp to 0."""
        assert normalize_amount(raw) == 0.0

    @pytest.mark.parametrize("raw,expected", [(0, 0.0), (3, 3.0), (2.5, 2.5), ("4.25", 4.25)])
    def test_valid_values_kept(self, raw, expected):
        """Verify valid numbers pass through as floats."""
        assert normalize_amount(raw) == expected


class TestParseRecords:
    """Test record mapping."""

    def test_category_total_camel_case(self):
        """Verify provider camelCase keys map onto the model."""
        total = parse_category_total({"category": "gpt", "netAmount": 12.5, "netUnitCount": 40})
        assert total.category == "gpt"
        assert total.net_amount == 12.5
        assert total.net_unit_count == 40.0

    def test_category_total_alternate_keys(self):
        """Verify model/netQuantity spellings are accepted."""
        total = parse_category_total({"model": "gpt", "netAmount": "1.5", "netQuantity": 3})
        assert total.category == "gpt"
        assert total.net_unit_count == 3.0

    def test_category_total_without_name_skipped(self):
        """Verify a nameless total is dropped."""
        assert parse_category_total({"netAmount": 5}) is None

    def test_activity_row_normalized(self):
        """Verify counts clamp and blank labels become absent."""
        row = parse_activity_row({
            "day": "2024-05-01",
            "user": "alice",
            "category": "gpt",
            "generationCount": -3,
            "acceptanceCount": float("nan"),
            "interactionCount": 7,
            "topLanguage": "  ",
            "topFeature": 42,
        })
        assert row.generation_count == 0.0
        assert row.acceptance_count == 0.0
        assert row.interaction_count == 7.0
        assert row.top_language is None
        assert row.top_feature is None
        assert not math.isnan(row.acceptance_count)

    def test_activity_row_missing_key_fields_skipped(self):
        """Verify rows without day, user or category are dropped."""
        assert parse_activity_row({"user": "alice", "category": "gpt"}) is None
        assert parse_activity_row({"day": "2024-05-01", "category": "gpt"}) is None
        assert parse_activity_row({"day": "2024-05-01", "user": "alice"}) is None


class TestLoadFiles:
    """Test JSON file loading."""

    def test_load_category_totals(self, tmp_path):
        """Verify totals load and nameless records are skipped."""
        path = tmp_path / "totals.json"
        path.write_text(json.dumps([
            {"category": "a", "netAmount": 1, "netUnitCount": 2},
            {"netAmount": 3},
            "not-an-object",
        ]))
        totals = load_category_totals(str(path))
        assert [t.category for t in totals] == ["a"]

    def test_load_activity_rows(self, tmp_path):
        """Verify activity rows load from snake_case records."""
        path = tmp_path / "rows.json"
        path.write_text(json.dumps([
            {"day": "2024-05-01", "user": "u", "category": "a", "generation_count": 2},
        ]))
        rows = load_activity_rows(str(path))
        assert len(rows) == 1
        assert rows[0].generation_count == 2.0

    def test_missing_file_raises(self, tmp_path):
        """Verify a missing file is reported."""
        with pytest.raises(FileNotFoundError, match="Input file not found"):
            load_category_totals(str(tmp_path / "nope.json"))

    def test_non_list_payload_raises(self, tmp_path):
        """Verify a JSON object payload is rejected."""
        path = tmp_path / "totals.json"
        path.write_text(json.dumps({"category": "a"}))
        with pytest.raises(ValueError, match="must contain a JSON list"):
            load_category_totals(str(path))

    def test_invalid_json_raises(self, tmp_path):
        """Verify malformed JSON is reported as ValueError."""
        path = tmp_path / "totals.json"
        path.write_text("[{")
        with pytest.raises(ValueError, match="Invalid JSON"):
            load_category_totals(str(path))
