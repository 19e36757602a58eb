"""Tests for dashboard statistics.

Properties checked:
1. rated + unrated = total
2. Rating buckets sum to the number of in-range ratings
3. Means match a direct mean over the same subset
4. Timeline cumulative counts never decrease and end at total
5. Goal performance has at most 5 entries, best first, none empty
6. Empty input gives zero/empty results
"""

from datetime import datetime, timedelta, timezone

from agentlab.analytics.dashboard import (
    dashboard_stats,
    experiments_timeline,
    goal_performance,
    rating_distribution,
    rating_trend,
    round_half_up,
    summary_stats,
)
from agentlab.models.domain import ExperimentEntity


def _exp(
    experiment_id: str,
    rating: int | None = None,
    goal: str = "",
    created_at: datetime = datetime(2024, 3, 5, 10, 0),
) -> ExperimentEntity:
    return ExperimentEntity(
        experiment_id=experiment_id,
        name=experiment_id,
        rating=rating,
        goal=goal,
        created_at=created_at,
    )


class TestRoundHalfUp:
    """Test rounding helper."""

    def test_half_rounds_up(self):
        """2.5 rounds to 3, unlike round()."""
        assert round_half_up(2.5) == 3
        assert round_half_up(12.5) == 13

    def test_two_decimals(self):
        """Thirds round to two places."""
        assert round_half_up(5 / 3, 2) == 1.67
        assert round_half_up(13 / 3, 2) == 4.33


class TestEmptyCollection:
    """Empty input: zeros and empty lists, no division errors."""

    def test_summary_all_zero(self):
        """All counters are zero."""
        stats = summary_stats([])
        assert stats.total == 0
        assert stats.rated == 0
        assert stats.unrated == 0
        assert stats.average_rating == 0
        assert stats.success_rate == 0
        assert stats.created_this_week == 0

    def test_distribution_has_five_empty_buckets(self):
        """Five buckets, all zero."""
        buckets = rating_distribution([])
        assert [b.rating for b in buckets] == [1, 2, 3, 4, 5]
        assert all(b.count == 0 for b in buckets)

    def test_views_empty(self):
        """Timeline, goals and trend are empty lists."""
        assert experiments_timeline([]) == []
        assert goal_performance([]) == []
        assert rating_trend([]) == []


class TestSummaryStats:
    """Test headline counters."""

    def test_counts_rated_and_unrated(self):
        """rated + unrated = total."""
        experiments = [_exp("a", 5), _exp("b", 4), _exp("c", 3), _exp("d")]
        stats = summary_stats(experiments)
        assert stats.total == 4
        assert stats.rated == 3
        assert stats.unrated == 1
        assert stats.rated + stats.unrated == stats.total

    def test_average_over_rated_only(self):
        """Average ignores unrated experiments and rounds to 2 places."""
        experiments = [_exp("a", 1), _exp("b", 2), _exp("c", 2), _exp("d")]
        stats = summary_stats(experiments)
        assert stats.average_rating == 1.67
        assert abs(stats.average_rating - 5 / 3) < 0.005

    def test_success_rate_is_percent_of_rated(self):
        """Ratings >= 4 count as success, relative to rated count."""
        experiments = [_exp("a", 5), _exp("b", 4), _exp("c", 3), _exp("d")]
        assert summary_stats(experiments).success_rate == 67

    def test_success_rate_half_rounds_up(self):
        """1 of 8 is 12.5%, reported as 13."""
        experiments = [_exp("win", 4)] + [_exp(f"l{i}", 1) for i in range(7)]
        assert summary_stats(experiments).success_rate == 13

    def test_no_rated_gives_zero_average(self):
        """Unrated-only collection has zero average and success rate."""
        stats = summary_stats([_exp("a"), _exp("b")])
        assert stats.average_rating == 0
        assert stats.success_rate == 0
        assert stats.unrated == 2

    def test_created_this_week_window(self):
        """Trailing 7-day window, inclusive of its start."""
        now = datetime(2024, 3, 10, 12, 0)
        experiments = [
            _exp("recent", created_at=now - timedelta(days=6)),
            _exp("boundary", created_at=now - timedelta(days=7)),
            _exp("old", created_at=now - timedelta(days=7, hours=1)),
            _exp("today", created_at=now),
        ]
        assert summary_stats(experiments, now=now).created_this_week == 3

    def test_created_this_week_with_aware_timestamps(self):
        """Timezone-aware timestamps are compared in local time."""
        now = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)
        experiments = [
            _exp("recent", created_at=now - timedelta(days=1)),
            _exp("old", created_at=now - timedelta(days=30)),
        ]
        assert summary_stats(experiments, now=now).created_this_week == 1

    def test_defaults_to_wall_clock(self):
        """Without now, an experiment created just now counts this week."""
        stats = summary_stats([_exp("fresh", created_at=datetime.now())])
        assert stats.created_this_week == 1


class TestRatingDistribution:
    """Test rating histogram."""

    def test_counts_per_rating(self):
        """Each bucket counts exact rating matches."""
        experiments = [_exp("a", 1), _exp("b", 1), _exp("c", 5), _exp("d")]
        counts = {b.rating: b.count for b in rating_distribution(experiments)}
        assert counts == {1: 2, 2: 0, 3: 0, 4: 0, 5: 1}

    def test_buckets_sum_to_rated(self):
        """Buckets sum to the rated count for in-range ratings."""
        experiments = [_exp(str(i), (i % 5) + 1) for i in range(12)] + [_exp("u")]
        buckets = rating_distribution(experiments)
        assert sum(b.count for b in buckets) == summary_stats(experiments).rated

    def test_out_of_range_rating_has_no_bucket(self):
        """A rating of 7 is counted as rated but lands in no bucket."""
        experiments = [_exp("a", 7), _exp("b", 3)]
        assert sum(b.count for b in rating_distribution(experiments)) == 1
        assert summary_stats(experiments).rated == 2


class TestExperimentsTimeline:
    """Test per-day creation timeline."""

    def test_groups_by_day_in_chronological_order(self):
        """Days appear oldest first regardless of input order."""
        experiments = [
            _exp("c", created_at=datetime(2024, 3, 6, 9, 0)),
            _exp("a", created_at=datetime(2024, 3, 5, 10, 0)),
            _exp("e", created_at=datetime(2024, 3, 8, 23, 59)),
            _exp("b", created_at=datetime(2024, 3, 5, 15, 0)),
        ]
        timeline = experiments_timeline(experiments)
        assert [(p.date, p.count, p.cumulative_count) for p in timeline] == [
            ("Mar 05", 2, 2),
            ("Mar 06", 1, 3),
            ("Mar 08", 1, 4),
        ]

    def test_cumulative_monotonic_and_ends_at_total(self):
        """Running total never decreases and ends at the collection size."""
        base = datetime(2024, 1, 1, 8, 0)
        experiments = [_exp(str(i), created_at=base + timedelta(days=i % 9)) for i in range(25)]
        timeline = experiments_timeline(experiments)
        cumulative = [p.cumulative_count for p in timeline]
        assert cumulative == sorted(cumulative)
        assert cumulative[-1] == len(experiments)

    def test_skips_empty_days(self):
        """Days without experiments are not listed."""
        experiments = [
            _exp("a", created_at=datetime(2024, 3, 1)),
            _exp("b", created_at=datetime(2024, 3, 20)),
        ]
        assert [p.date for p in experiments_timeline(experiments)] == ["Mar 01", "Mar 20"]


class TestGoalPerformance:
    """Test per-goal ranking."""

    def test_missing_goal_grouped_as_no_goal(self):
        """Empty and missing goals share the No Goal group."""
        experiments = [_exp("a", 3, goal=""), _exp("b", 5, goal=None)]
        result = goal_performance(experiments)
        assert len(result) == 1
        assert result[0].goal == "No Goal"
        assert result[0].count == 2
        assert result[0].average_rating == 4.0

    def test_average_over_rated_subset_count_over_all(self):
        """count includes unrated members; the mean does not."""
        experiments = [_exp("a", 4, goal="g"), _exp("b", goal="g"), _exp("c", 2, goal="g")]
        result = goal_performance(experiments)
        assert result[0].count == 3
        assert result[0].average_rating == 3.0

    def test_unrated_group_has_zero_average(self):
        """A group with no ratings averages 0."""
        result = goal_performance([_exp("a", goal="idle")])
        assert result[0].average_rating == 0
        assert result[0].count == 1

    def test_long_goals_truncated_and_collapsed(self):
        """Goals sharing a 30-character prefix collapse into one group."""
        prefix = "A" * 30
        experiments = [
            _exp("a", 5, goal=prefix + " first variant"),
            _exp("b", 3, goal=prefix + " second variant"),
        ]
        result = goal_performance(experiments)
        assert len(result) == 1
        assert result[0].goal == prefix + "..."
        assert result[0].count == 2

    def test_goal_of_exactly_thirty_chars_kept(self):
        """A 30-character goal is not truncated."""
        goal = "B" * 30
        assert goal_performance([_exp("a", 4, goal=goal)])[0].goal == goal

    def test_top_five_sorted_descending(self):
        """At most 5 groups, best average first, none empty."""
        experiments = [_exp(f"e{i}", (i % 5) + 1, goal=f"goal-{i}") for i in range(7)]
        result = goal_performance(experiments)
        assert len(result) == 5
        averages = [g.average_rating for g in result]
        assert averages == sorted(averages, reverse=True)
        assert all(g.count > 0 for g in result)

    def test_ties_keep_encounter_order(self):
        """Equal averages keep the order groups were first seen."""
        experiments = [
            _exp("a", 4, goal="second"),
            _exp("b", 4, goal="first"),
            _exp("c", 5, goal="best"),
        ]
        assert [g.goal for g in goal_performance(experiments)] == ["best", "second", "first"]


class TestRatingTrend:
    """Test weekly rating trend."""

    def test_groups_by_week_starting_sunday(self):
        """Sunday starts a new week; unrated experiments are ignored."""
        experiments = [
            _exp("sun", 5, created_at=datetime(2024, 3, 10, 9, 0)),  # Sunday
            _exp("mon", 4, created_at=datetime(2024, 3, 4, 9, 0)),
            _exp("sat", 3, created_at=datetime(2024, 3, 9, 22, 0)),
            _exp("unrated", None, created_at=datetime(2024, 3, 12, 9, 0)),
        ]
        trend = rating_trend(experiments)
        assert [(p.date, p.average_rating, p.count) for p in trend] == [
            ("Mar 03", 3.5, 2),
            ("Mar 10", 5.0, 1),
        ]

    def test_weekly_average_rounded(self):
        """Weekly mean is rounded to two places."""
        day = datetime(2024, 3, 5)
        experiments = [
            _exp("a", 5, created_at=day),
            _exp("b", 4, created_at=day),
            _exp("c", 4, created_at=day),
        ]
        assert rating_trend(experiments)[0].average_rating == 4.33

    def test_unrated_only_is_empty(self):
        """No rated experiments, no trend."""
        assert rating_trend([_exp("a"), _exp("b")]) == []


class TestDashboardStats:
    """Test the bundled dashboard views."""

    def test_does_not_mutate_input(self):
        """Input order and contents are unchanged."""
        experiments = [
            _exp("late", 2, created_at=datetime(2024, 3, 9)),
            _exp("early", 5, created_at=datetime(2024, 3, 1)),
        ]
        snapshot = list(experiments)
        dashboard_stats(experiments)
        assert experiments == snapshot

    def test_bundles_all_views(self):
        """All five views are computed."""
        now = datetime(2024, 3, 10)
        experiments = [_exp("a", 4, goal="g", created_at=datetime(2024, 3, 5))]
        stats = dashboard_stats(experiments, now=now)
        assert stats.summary.total == 1
        assert stats.summary.created_this_week == 1
        assert len(stats.rating_distribution) == 5
        assert stats.timeline[0].cumulative_count == 1
        assert stats.goal_performance[0].goal == "g"
        assert stats.rating_trend[0].count == 1
