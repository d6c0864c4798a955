"""Tests for shared date and statistics helpers."""

from datetime import date, datetime, timezone

import pytest

from clarity_analytics.stats import (
    DAY_MS,
    apportion_percentages,
    normalized_entropy,
    round_half_up,
    round_to,
    to_epoch_ms,
    to_utc_datetime,
    usage_balance,
    utc_date,
    weekday_name,
)


class TestRounding:
    """Tests for half-up rounding."""

    @pytest.mark.parametrize(
        "value,expected", [(0.5, 1), (1.5, 2), (2.5, 3), (2.49, 2), (-0.5, 0), (66.67, 67)]
    )
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected

    def test_round_to(self):
        assert round_to(0.125, 2) == 0.13
        assert round_to(0.7219, 2) == 0.72
        assert round_to(3.95, 1) == 4.0


class TestApportionPercentages:
    """Tests for percentage apportionment."""

    def test_full_coverage_sums_to_100(self):
        """Test thirds sum to exactly 100."""
        assert apportion_percentages([1, 1, 1], 3) == [34, 33, 33]

    def test_partial_coverage_rounds_each_share(self):
        """Test shares are rounded independently when the sum stays under 100."""
        assert apportion_percentages([2, 2, 1], 6) == [33, 33, 17]
        # 4/6 and 1/6 with one untagged record: 66.67 and 16.67
        assert apportion_percentages([4, 1], 6) == [67, 17]

    def test_overshoot_is_corrected(self):
        """Test the extra point goes to the largest remainder."""
        assert apportion_percentages([3, 3, 2], 8) == [38, 37, 25]

    def test_partial_coverage(self):
        """Test untagged records keep the sum below 100."""
        result = apportion_percentages([1], 4)
        assert result == [25]

    def test_exact_shares_untouched(self):
        assert apportion_percentages([1, 1, 2], 4) == [25, 25, 50]

    def test_zero_total(self):
        """Test a zero denominator gives zeros, not an error."""
        assert apportion_percentages([], 0) == []
        assert apportion_percentages([0, 0], 0) == [0, 0]

    def test_sum_never_exceeds_100(self):
        """Test over a range of distributions."""
        for total in range(1, 30):
            for first in range(0, total + 1):
                counts = [first, total - first]
                result = apportion_percentages(counts, total)
                assert sum(result) == 100
                for count, pct in zip(counts, result):
                    assert abs(pct - count * 100 / total) < 1


class TestEntropyAndBalance:
    """Tests for distribution scores."""

    def test_entropy_single_category(self):
        assert normalized_entropy([5]) == 0.0

    def test_entropy_empty(self):
        assert normalized_entropy([]) == 0.0

    def test_entropy_even(self):
        assert normalized_entropy([2, 2, 2, 2]) == pytest.approx(1.0)

    def test_entropy_ignores_zero_counts(self):
        assert normalized_entropy([3, 0]) == 0.0

    def test_balance_even(self):
        assert usage_balance([3, 3, 3]) == 1.0

    def test_balance_skewed_floors_at_zero(self):
        """Test extreme skew clamps to 0."""
        assert usage_balance([100, 1, 1, 1, 1, 1, 1, 1, 1]) == 0.0

    def test_balance_empty(self):
        assert usage_balance([]) == 0.0


class TestTimeConversion:
    """Tests for UTC timestamp helpers."""

    def test_epoch(self):
        assert to_utc_datetime(0) == datetime(1970, 1, 1, tzinfo=timezone.utc)

    def test_round_trip(self):
        dt = datetime(2024, 1, 8, 9, 30, tzinfo=timezone.utc)
        assert to_utc_datetime(to_epoch_ms(dt)) == dt

    def test_naive_is_utc(self):
        assert to_epoch_ms(datetime(1970, 1, 2)) == DAY_MS

    def test_utc_date(self):
        # 2024-01-08T23:59:59.999Z
        assert utc_date(1704758399999) == date(2024, 1, 8)

    @pytest.mark.parametrize(
        "day,expected",
        [(7, "Sunday"), (8, "Monday"), (12, "Friday"), (13, "Saturday")],
    )
    def test_weekday_name(self, day, expected):
        assert weekday_name(datetime(2024, 1, day, tzinfo=timezone.utc)) == expected
