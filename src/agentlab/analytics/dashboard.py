"""Dashboard statistics over a collection of experiments.

Five independent views, each recomputed from the full collection on
every call:
- summary_stats: totals, average rating, success rate, created this week
- rating_distribution: one bucket per rating value 1..5
- experiments_timeline: per-day counts with a running total
- goal_performance: top 5 goals by average rating
- rating_trend: per-week average rating

All functions are pure - no database access, no mutation of the input.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Sequence

from agentlab.models.domain import ExperimentEntity

RATING_SCALE = (1, 2, 3, 4, 5)
SUCCESS_THRESHOLD = 4  # Ratings at or above this count as a success
RECENT_WINDOW = timedelta(days=7)
NO_GOAL_LABEL = "No Goal"
GOAL_LABEL_MAX_CHARS = 30
GOAL_LABEL_ELLIPSIS = "..."
TOP_GOALS = 5
DATE_LABEL_FORMAT = "%b %d"


@dataclass
class SummaryStats:
    """Headline counters for the dashboard."""

    total: int
    rated: int
    unrated: int
    average_rating: float
    success_rate: int
    created_this_week: int


@dataclass
class RatingBucket:
    """Number of experiments with exactly one rating value."""

    rating: int
    count: int


@dataclass
class TimelinePoint:
    """Experiments created on one calendar day."""

    date: str
    count: int
    cumulative_count: int


@dataclass
class GoalPerformance:
    """Average rating of one goal group.

    count includes unrated members; average_rating covers rated ones only.
    """

    goal: str
    average_rating: float
    count: int


@dataclass
class TrendPoint:
    """Average rating of experiments created in one week."""

    date: str
    average_rating: float
    count: int


@dataclass
class DashboardStats:
    """All dashboard views for one snapshot of experiments."""

    summary: SummaryStats
    rating_distribution: list[RatingBucket] = field(default_factory=list)
    timeline: list[TimelinePoint] = field(default_factory=list)
    goal_performance: list[GoalPerformance] = field(default_factory=list)
    rating_trend: list[TrendPoint] = field(default_factory=list)


# ============================================================================
# Helpers
# ============================================================================


def round_half_up(value: float, digits: int = 0) -> float:
    """Round to ``digits`` places with halves rounded up (2.5 -> 3).

    round() rounds halves to even, which would turn 2.5 into 2.
    """
    scale = 10**digits
    return math.floor(value * scale + 0.5) / scale


def _to_local(moment: datetime) -> datetime:
    """Naive local time for bucketing. Naive input is already local."""
    if moment.tzinfo is not None:
        return moment.astimezone().replace(tzinfo=None)
    return moment


def _is_rated(exp: ExperimentEntity) -> bool:
    return exp.rating is not None


def _by_creation(experiments: Sequence[ExperimentEntity]) -> list[ExperimentEntity]:
    # sorted() is stable: records created at the same instant keep input order
    return sorted(experiments, key=lambda e: _to_local(e.created_at))


def _week_start(day: date) -> date:
    """Sunday on or before the given day."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def _goal_label(goal: str | None) -> str:
    label = goal or NO_GOAL_LABEL
    if len(label) > GOAL_LABEL_MAX_CHARS:
        return label[:GOAL_LABEL_MAX_CHARS] + GOAL_LABEL_ELLIPSIS
    return label


# ============================================================================
# Views
# ============================================================================


def summary_stats(
    experiments: Sequence[ExperimentEntity],
    now: datetime | None = None,
) -> SummaryStats:
    """Compute headline counters.

    Args:
        experiments: Snapshot of all experiments.
        now: Evaluation time for the trailing 7-day window. Defaults to
            the current wall-clock time.

    Returns:
        SummaryStats. All zeros for an empty collection.
    """
    now = _to_local(now) if now is not None else datetime.now()
    rated = [e for e in experiments if _is_rated(e)]

    average = 0.0
    success_rate = 0
    if rated:
        average = round_half_up(sum(e.rating for e in rated) / len(rated), 2)
        successful = sum(1 for e in rated if e.rating >= SUCCESS_THRESHOLD)
        success_rate = int(round_half_up(successful / len(rated) * 100))

    window_start = now - RECENT_WINDOW
    this_week = sum(1 for e in experiments if _to_local(e.created_at) >= window_start)

    return SummaryStats(
        total=len(experiments),
        rated=len(rated),
        unrated=len(experiments) - len(rated),
        average_rating=average,
        success_rate=success_rate,
        created_this_week=this_week,
    )


def rating_distribution(experiments: Sequence[ExperimentEntity]) -> list[RatingBucket]:
    """Count experiments per rating value; always five buckets."""
    counts = {rating: 0 for rating in RATING_SCALE}
    for exp in experiments:
        if exp.rating in counts:
            counts[exp.rating] += 1
    return [RatingBucket(rating=rating, count=counts[rating]) for rating in RATING_SCALE]


def experiments_timeline(experiments: Sequence[ExperimentEntity]) -> list[TimelinePoint]:
    """Count experiments per creation day, with a running total.

    Days without experiments are omitted. Days appear in chronological
    order of their first experiment.
    """
    daily: dict[str, int] = {}
    for exp in _by_creation(experiments):
        label = _to_local(exp.created_at).strftime(DATE_LABEL_FORMAT)
        daily[label] = daily.get(label, 0) + 1

    points = []
    cumulative = 0
    for label, count in daily.items():
        cumulative += count
        points.append(TimelinePoint(date=label, count=count, cumulative_count=cumulative))
    return points


def goal_performance(experiments: Sequence[ExperimentEntity]) -> list[GoalPerformance]:
    """Rank goal groups by average rating, best first, top 5.

    Goals longer than 30 characters are grouped by their truncated label,
    so two goals sharing a 30-character prefix land in one group.
    """
    groups: dict[str, dict[str, int]] = {}
    for exp in experiments:
        label = _goal_label(exp.goal)
        group = groups.setdefault(label, {"total": 0, "count": 0, "rated": 0})
        group["count"] += 1
        if _is_rated(exp):
            group["total"] += exp.rating
            group["rated"] += 1

    ranked = [
        GoalPerformance(
            goal=label,
            average_rating=(
                round_half_up(data["total"] / data["rated"], 2) if data["rated"] else 0.0
            ),
            count=data["count"],
        )
        for label, data in groups.items()
    ]
    ranked.sort(key=lambda g: g.average_rating, reverse=True)
    return ranked[:TOP_GOALS]


def rating_trend(experiments: Sequence[ExperimentEntity]) -> list[TrendPoint]:
    """Average rating per creation week (weeks start on Sunday).

    Unrated experiments are ignored.
    """
    weekly: dict[str, dict[str, int]] = {}
    for exp in _by_creation([e for e in experiments if _is_rated(e)]):
        week = _week_start(_to_local(exp.created_at).date())
        data = weekly.setdefault(week.strftime(DATE_LABEL_FORMAT), {"total": 0, "count": 0})
        data["total"] += exp.rating
        data["count"] += 1

    return [
        TrendPoint(
            date=label,
            average_rating=round_half_up(data["total"] / data["count"], 2),
            count=data["count"],
        )
        for label, data in weekly.items()
    ]


def dashboard_stats(
    experiments: Sequence[ExperimentEntity],
    now: datetime | None = None,
) -> DashboardStats:
    """Compute every dashboard view for one snapshot."""
    return DashboardStats(
        summary=summary_stats(experiments, now=now),
        rating_distribution=rating_distribution(experiments),
        timeline=experiments_timeline(experiments),
        goal_performance=goal_performance(experiments),
        rating_trend=rating_trend(experiments),
    )
