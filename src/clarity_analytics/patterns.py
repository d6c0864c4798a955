"""Pattern detection over a user's session history.

Each analyzer is a pure function of the records it is given: no clock, no
I/O, no shared state. Hours, weekdays and calendar dates are derived in UTC.
"""

import logging
import math
from collections import Counter
from collections.abc import Iterable
from dataclasses import asdict, dataclass

from clarity_analytics.records import SessionRecord
from clarity_analytics.stats import (
    DAY_MS,
    WEEKDAY_NAMES,
    apportion_percentages,
    normalized_entropy,
    round_half_up,
    round_to,
    to_utc_datetime,
    usage_balance,
    utc_date,
    weekday_name,
)

logger = logging.getLogger("clarity-analytics")

DEFAULT_ACTIVE_HOUR = 12
DEFAULT_ACTIVE_DAY = "Monday"
DEFAULT_THEME = "general"
DEFAULT_EMOTION = "neutral"

# Ratings at or above this count as the session having helped
IMPROVED_RATING = 4

# Second-half rate must move past these multiples of the first-half rate
INCREASING_FACTOR = 1.2
DECREASING_FACTOR = 0.8


@dataclass(frozen=True)
class TimePatterns:
    by_hour: dict[int, int]
    by_day_of_week: dict[str, int]
    most_active_hour: int
    most_active_day: str
    preferred_time_range: str  # 'morning', 'afternoon', 'evening', 'night'

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ThemeShare:
    theme: str
    count: int
    percentage: int


@dataclass(frozen=True)
class ThemePatterns:
    themes: list[ThemeShare]
    top_theme: str
    diversity: float  # 0-1, how evenly sessions spread across themes

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class EmotionShare:
    emotion: str
    count: int
    percentage: int


@dataclass(frozen=True)
class EmotionalPatterns:
    emotions: list[EmotionShare]
    most_common: str
    improvement_rate: int  # percent of all sessions rated helpful

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ToolUsagePatterns:
    by_tool: dict[str, int]
    favorite_tools: list[str]
    least_used_tools: list[str]
    usage_balance: float  # 0-1, how evenly usage is distributed

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class SessionTrends:
    total_sessions: int
    weekly_average: int
    trend: str  # 'increasing', 'decreasing', 'stable'
    streak_days: int
    last_active: int | None  # epoch millis

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class PatternReport:
    """All five analyses over one history snapshot."""

    time_patterns: TimePatterns
    theme_patterns: ThemePatterns
    emotional_patterns: EmotionalPatterns
    tool_usage_patterns: ToolUsagePatterns
    session_trends: SessionTrends

    def to_dict(self) -> dict:
        return asdict(self)


def time_range_for_hour(hour: int) -> str:
    """Bucket an hour of day into a named time range."""
    if 5 <= hour < 12:
        return "morning"
    if 12 <= hour < 17:
        return "afternoon"
    if 17 <= hour < 22:
        return "evening"
    return "night"


def _ranked_counts(values: Iterable[str | None]) -> list[tuple[str, int]]:
    """Count non-empty values, most frequent first, ties in first-seen order."""
    counts: Counter = Counter(v for v in values if v)
    # Counter preserves first-seen order and sorted() is stable
    return sorted(counts.items(), key=lambda item: item[1], reverse=True)


def analyze_time_patterns(records: Iterable[SessionRecord]) -> TimePatterns:
    """Build hour-of-day and day-of-week histograms.

    Args:
        records: Session history, any order

    Returns:
        TimePatterns with histograms and the most active hour/day. Ties go to
        the lowest hour and to the earliest day in a Sunday-first week.
    """
    hours: Counter = Counter()
    days: Counter = Counter()

    for record in records:
        dt = to_utc_datetime(record.timestamp)
        hours[dt.hour] += 1
        days[weekday_name(dt)] += 1

    by_hour = {hour: hours[hour] for hour in sorted(hours)}
    by_day_of_week = {day: days[day] for day in WEEKDAY_NAMES if day in days}

    # max() keeps the first maximum, so canonical ordering is the tie-break
    most_active_hour = max(by_hour, key=by_hour.get) if by_hour else DEFAULT_ACTIVE_HOUR
    most_active_day = (
        max(by_day_of_week, key=by_day_of_week.get) if by_day_of_week else DEFAULT_ACTIVE_DAY
    )

    return TimePatterns(
        by_hour=by_hour,
        by_day_of_week=by_day_of_week,
        most_active_hour=most_active_hour,
        most_active_day=most_active_day,
        preferred_time_range=time_range_for_hour(most_active_hour),
    )


def analyze_theme_patterns(records: Iterable[SessionRecord]) -> ThemePatterns:
    """Rank session themes and score how diverse they are.

    Percentages are shares of all sessions, so untagged sessions lower every
    theme's percentage without appearing in the list.
    """
    records = list(records)
    ranked = _ranked_counts(r.theme for r in records)
    percentages = apportion_percentages([count for _, count in ranked], len(records))

    themes = [
        ThemeShare(theme=theme, count=count, percentage=pct)
        for (theme, count), pct in zip(ranked, percentages)
    ]

    return ThemePatterns(
        themes=themes,
        top_theme=themes[0].theme if themes else DEFAULT_THEME,
        diversity=round_to(normalized_entropy([t.count for t in themes]), 2),
    )


def analyze_emotional_patterns(records: Iterable[SessionRecord]) -> EmotionalPatterns:
    """Rank detected emotions and measure how often sessions helped.

    The improvement rate uses the helpful rating as a proxy: the percentage
    of all sessions (rated or not) rated 4 or higher.
    """
    records = list(records)
    total = len(records)
    ranked = _ranked_counts(r.emotion for r in records)
    percentages = apportion_percentages([count for _, count in ranked], total)

    emotions = [
        EmotionShare(emotion=emotion, count=count, percentage=pct)
        for (emotion, count), pct in zip(ranked, percentages)
    ]

    improved = sum(
        1
        for r in records
        if r.helpful_rating is not None and r.helpful_rating >= IMPROVED_RATING
    )
    improvement_rate = round_half_up(improved / total * 100) if total > 0 else 0

    return EmotionalPatterns(
        emotions=emotions,
        most_common=emotions[0].emotion if emotions else DEFAULT_EMOTION,
        improvement_rate=improvement_rate,
    )


def analyze_tool_usage_patterns(records: Iterable[SessionRecord]) -> ToolUsagePatterns:
    """Count sessions per tool and score how evenly tools are used."""
    ranked = _ranked_counts(r.tool_id for r in records)

    return ToolUsagePatterns(
        by_tool=dict(ranked),
        favorite_tools=[tool for tool, _ in ranked[:2]],
        least_used_tools=[tool for tool, _ in ranked[-2:]],
        usage_balance=round_to(usage_balance([count for _, count in ranked]), 2),
    )


def _span_days(records: list[SessionRecord]) -> float:
    """Fractional days between first and last record, at least 1."""
    return max((records[-1].timestamp - records[0].timestamp) / DAY_MS, 1)


def _detect_trend(ordered: list[SessionRecord]) -> str:
    """Compare session rates of the earlier and later halves of a history."""
    if len(ordered) < 2:
        return "stable"

    midpoint = len(ordered) // 2
    first_half = ordered[:midpoint]
    second_half = ordered[midpoint:]

    first_rate = len(first_half) / _span_days(first_half)
    second_rate = len(second_half) / _span_days(second_half)

    if second_rate > first_rate * INCREASING_FACTOR:
        return "increasing"
    if second_rate < first_rate * DECREASING_FACTOR:
        return "decreasing"
    return "stable"


def _current_streak(ordered: list[SessionRecord]) -> int:
    """Consecutive active days ending at the most recent session date."""
    dates = sorted({utc_date(r.timestamp) for r in ordered})
    if not dates:
        return 0

    streak = 1
    for i in range(len(dates) - 1, 0, -1):
        if (dates[i] - dates[i - 1]).days != 1:
            break
        streak += 1

    return streak


def analyze_session_trends(records: Iterable[SessionRecord]) -> SessionTrends:
    """Summarize session cadence: weekly average, trend, streak, last activity.

    Args:
        records: Session history, any order

    Returns:
        SessionTrends; an empty history yields zero counts, a 'stable' trend
        and no last-active timestamp
    """
    ordered = sorted(records, key=lambda r: r.timestamp)
    if not ordered:
        return SessionTrends(
            total_sessions=0,
            weekly_average=0,
            trend="stable",
            streak_days=0,
            last_active=None,
        )

    total = len(ordered)
    days_diff = max(math.ceil((ordered[-1].timestamp - ordered[0].timestamp) / DAY_MS), 1)

    return SessionTrends(
        total_sessions=total,
        weekly_average=round_half_up(total / days_diff * 7),
        trend=_detect_trend(ordered),
        streak_days=_current_streak(ordered),
        last_active=ordered[-1].timestamp,
    )


def generate_full_report(records: Iterable[SessionRecord]) -> PatternReport:
    """Run every analysis over the same history snapshot."""
    records = list(records)
    logger.debug(f"Generating pattern report over {len(records)} records")

    return PatternReport(
        time_patterns=analyze_time_patterns(records),
        theme_patterns=analyze_theme_patterns(records),
        emotional_patterns=analyze_emotional_patterns(records),
        tool_usage_patterns=analyze_tool_usage_patterns(records),
        session_trends=analyze_session_trends(records),
    )
