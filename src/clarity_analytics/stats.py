"""Shared date and statistics helpers for pattern analytics.

All timestamp conversion happens in UTC so histograms and streaks are
reproducible regardless of the host's local time zone.
"""

import math
from collections.abc import Sequence
from datetime import date, datetime, timedelta, timezone

DAY_MS = 24 * 60 * 60 * 1000

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Epoch-millis range representable as a datetime
_MS = timedelta(milliseconds=1)
MIN_TIMESTAMP_MS = (datetime.min.replace(tzinfo=timezone.utc) - _EPOCH) // _MS
MAX_TIMESTAMP_MS = (datetime.max.replace(tzinfo=timezone.utc) - _EPOCH) // _MS

# Week order starting Sunday, used for weekday names and tie-breaks
WEEKDAY_NAMES = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)


def to_utc_datetime(timestamp_ms: int) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime."""
    return _EPOCH + timedelta(milliseconds=timestamp_ms)


def utc_date(timestamp_ms: int) -> date:
    """Return the UTC calendar date of an epoch-millis timestamp."""
    return to_utc_datetime(timestamp_ms).date()


def weekday_name(dt: datetime) -> str:
    """Return the full English weekday name for a datetime."""
    # datetime.weekday() is Monday=0; shift so Sunday=0
    return WEEKDAY_NAMES[(dt.weekday() + 1) % 7]


def to_epoch_ms(dt: datetime) -> int:
    """Convert a datetime to epoch milliseconds. Naive datetimes are taken as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return (dt - _EPOCH) // _MS


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with .5 rounding up."""
    return math.floor(value + 0.5)


def round_to(value: float, places: int = 2) -> float:
    """Round half-up to a fixed number of decimal places."""
    factor = 10**places
    return math.floor(value * factor + 0.5) / factor


def _share_half_up(count: int, total: int) -> int:
    # round_half_up(count / total * 100) in integer arithmetic
    return (2 * count * 100 + total) // (2 * total)


def _largest_remainder(counts: Sequence[int], total: int, target: int) -> list[int]:
    floors = [count * 100 // total for count in counts]
    remainders = [count * 100 % total for count in counts]

    shortfall = target - sum(floors)
    order = sorted(range(len(counts)), key=lambda i: remainders[i], reverse=True)
    for i in order[:shortfall]:
        floors[i] += 1

    return floors


def apportion_percentages(counts: Sequence[int], total: int) -> list[int]:
    """Split counts into integer percentages of total.

    Each count is rounded half-up on its own. When that pushes the sum past
    100, or the counts cover the total but do not sum to exactly 100, the
    distribution is redone by largest remainder (ties go to the earlier
    entry) so it sums to the rounded share of all counts.

    Args:
        counts: Per-category counts, in ranked order
        total: Denominator (total records, not just the categorized ones)

    Returns:
        Integer percentages, one per count
    """
    if total <= 0:
        return [0] * len(counts)

    rounded = [_share_half_up(count, total) for count in counts]
    covered = sum(counts) == total
    if sum(rounded) > 100 or (covered and sum(rounded) != 100):
        return _largest_remainder(counts, total, _share_half_up(sum(counts), total))

    return rounded


def normalized_entropy(counts: Sequence[int]) -> float:
    """Shannon entropy of a distribution divided by its maximum, in [0, 1].

    Returns 0 when fewer than two categories are observed.
    """
    observed = [c for c in counts if c > 0]
    if len(observed) < 2:
        return 0.0

    total = sum(observed)
    entropy = 0.0
    for count in observed:
        p = count / total
        entropy -= p * math.log2(p)

    return min(entropy / math.log2(len(observed)), 1.0)


def usage_balance(counts: Sequence[int]) -> float:
    """Evenness of usage across categories, in [0, 1].

    1 minus the coefficient of variation of counts around their mean,
    floored at 0. Returns 0 for no usage.
    """
    total = sum(counts)
    if not counts or total == 0:
        return 0.0

    expected = total / len(counts)
    variance = sum((count - expected) ** 2 for count in counts) / len(counts)
    return 1 - min(math.sqrt(variance) / expected, 1)
