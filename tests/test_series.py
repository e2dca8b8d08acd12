"""
Tests for per-user series construction.
"""

import math

import pytest

from ai_usage_attribution.core.projection import estimate_total_cost
from ai_usage_attribution.core.series import build_user_series
from ai_usage_attribution.ingest.models import CategoryTotal, DailyActivityRow


def make_row(
    user,
    day,
    category,
    generated,
    accepted=0.0,
    language=None,
    feature=None
) -> DailyActivityRow:
    """Create a test activity row."""
    return DailyActivityRow(
        day=day,
        user=user,
        category=category,
        generation_count=generated,
        acceptance_count=accepted,
        interaction_count=1.0,
        top_language=language,
        top_feature=feature
    )


TOTALS = [
    CategoryTotal("gpt", net_amount=30.0, net_unit_count=30.0),
    CategoryTotal("claude", net_amount=10.0, net_unit_count=10.0),
]


class TestBuildUserSeries:
    """Test series aggregation."""

    def test_day_axis_shared_across_users(self):
        """Verify every series spans the same ordered days."""
        rows = [
            make_row("alice", "2024-05-03", "gpt", 2),
            make_row("bob", "2024-05-01", "claude", 1),
        ]
        result = build_user_series(rows, TOTALS, ensure_users=["seat-only"])

        expected = ["2024-05-01", "2024-05-03"]
        assert len(result.users) == 3
        for series in result.users:
            assert [p.day for p in series.points] == expected

    def test_points_sum_units_per_category(self):
        """Verify units are summed per day and category, zero-filled."""
        rows = [
            make_row("alice", "2024-05-01", "gpt", 2),
            make_row("alice", "2024-05-01", "claude", 3),
            make_row("alice", "2024-05-02", "gpt", 5),
        ]
        result = build_user_series(rows, TOTALS)
        alice = result.users[0]

        assert result.categories == ["claude", "gpt"]
        assert alice.points[0].values == {"claude": 3.0, "gpt": 2.0}
        assert alice.points[1].values == {"claude": 0.0, "gpt": 5.0}
        assert alice.total_generated == 10.0

    def test_summary_fields(self):
        """Verify totals, acceptance rate and top fields."""
        rows = [
            make_row("alice", "2024-05-01", "gpt", 8, accepted=4, language="python", feature="chat"),
            make_row("alice", "2024-05-02", "claude", 2, accepted=1, language="go", feature="completion"),
        ]
        alice = build_user_series(rows, TOTALS).users[0]

        assert alice.total_accepted == 5.0
        assert alice.accept_rate == pytest.approx(0.5)
        assert alice.top_category == "gpt"
        assert alice.top_language == "python"
        assert alice.top_feature == "chat"

    def test_top_tie_break_is_lexicographic(self):
        """Verify ties resolve to the alphabetically first name, regardless of row order."""
        rows = [
            make_row("alice", "2024-05-01", "gpt", 3, language="rust"),
            make_row("alice", "2024-05-01", "claude", 3, language="go"),
        ]
        for ordering in (rows, list(reversed(rows))):
            alice = build_user_series(ordering, TOTALS).users[0]
            assert alice.top_category == "claude"
            assert alice.top_language == "go"

    def test_missing_optional_fields_are_absent(self):
        """Verify rows without language/feature leave top fields unset."""
        alice = build_user_series([make_row("alice", "2024-05-01", "gpt", 1)], TOTALS).users[0]
        assert alice.top_language is None
        assert alice.top_feature is None

    def test_users_sorted_by_estimated_cost(self):
        """Verify the most expensive user comes first."""
        rows = [
            make_row("cheap", "2024-05-01", "claude", 10),
            make_row("pricey", "2024-05-01", "gpt", 10),
        ]
        result = build_user_series(rows, TOTALS)
        costs = [estimate_total_cost(s, result.rates.rates) for s in result.users]

        assert [s.user for s in result.users] == ["pricey", "cheap"]
        assert costs == sorted(costs, reverse=True)

    def test_ensure_present_without_activity(self):
        """Verify a seat with no rows gets an all-zero series."""
        result = build_user_series(
            [],
            [CategoryTotal("X", net_amount=10.0, net_unit_count=5.0)],
            ensure_users=["seat1"]
        )

        assert len(result.users) == 1
        seat = result.users[0]
        assert seat.user == "seat1"
        assert seat.total_generated == 0
        assert seat.accept_rate == 0
        assert seat.points == []
        assert seat.top_category is None

    def test_ensure_present_with_caller_axis(self):
        """Verify a caller-supplied span yields zero points for idle seats."""
        result = build_user_series(
            [],
            TOTALS,
            ensure_users=["seat1"],
            days=["2024-05-02", "2024-05-01"]
        )
        seat = result.users[0]
        assert [p.day for p in seat.points] == ["2024-05-01", "2024-05-02"]
        assert all(p.total() == 0 for p in seat.points)

    def test_caller_axis_merged_with_observed_days(self):
        """Verify observed days outside the supplied span aren't dropped."""
        rows = [make_row("alice", "2024-06-01", "gpt", 1)]
        result = build_user_series(rows, TOTALS, days=["2024-05-31"])
        assert [p.day for p in result.users[0].points] == ["2024-05-31", "2024-06-01"]

    def test_zero_generation_never_nan(self):
        """Verify a user with accepted but no generated units has a finite rate."""
        rows = [make_row("alice", "2024-05-01", "gpt", 0, accepted=3)]
        alice = build_user_series(rows, TOTALS).users[0]
        assert alice.accept_rate == 0
        assert not math.isnan(alice.accept_rate)

    def test_fallback_flag_surfaces(self):
        """Verify unmatched categories surface the blended-rate flag."""
        rows = [make_row("alice", "2024-05-01", "unknown-model", 4)]
        result = build_user_series(rows, TOTALS)
        assert result.rates.used_blended_rate is True
        assert result.rates.rates["unknown-model"] == pytest.approx(10.0)

    def test_empty_everything(self):
        """Verify no rows and no users yield an empty result."""
        result = build_user_series([], [])
        assert result.users == []
        assert result.categories == []

    def test_blank_category_rows_ignored(self):
        """Verify rows without a category don't add keys outside the category list."""
        rows = [
            make_row("alice", "2024-05-01", "gpt", 2),
            make_row("alice", "2024-05-01", "", 7),
        ]
        result = build_user_series(rows, TOTALS)
        alice = result.users[0]

        assert result.categories == ["gpt"]
        assert set(alice.points[0].values) == {"gpt"}
        assert alice.total_generated == 2.0
        assert set(result.rates.rates) == {"gpt"}
