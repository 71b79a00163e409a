"""Tests for interval statistics, frequency buckets and confidence tiers."""

import pytest
from datetime import date

from cadence.models.recurring import Frequency, Confidence
from cadence.services.statistics import (
    BULK_AMOUNT_RATIO_THRESHOLD,
    BULK_INTERVAL_STDDEV_DAYS,
    SINGLE_FREQUENCY_BUCKETS,
    GroupStatistics,
    classify_confidence,
    classify_frequency,
    compute_statistics,
)


class TestClassifyFrequency:
    """Bucket upper bounds are inclusive."""

    @pytest.mark.parametrize("interval,expected", [
        (7, Frequency.weekly),
        (10, Frequency.weekly),
        (10.5, Frequency.biweekly),
        (14, Frequency.biweekly),
        (20, Frequency.biweekly),
        (30.8, Frequency.monthly),
        (40, Frequency.monthly),
        (41, Frequency.quarterly),
        (100, Frequency.quarterly),
        (365, Frequency.yearly),
        (400, Frequency.yearly),
    ])
    def test_bulk_buckets(self, interval, expected):
        assert classify_frequency(interval) == expected

    def test_out_of_range(self):
        assert classify_frequency(401) is None

    def test_single_buckets_are_tighter(self):
        assert classify_frequency(38, SINGLE_FREQUENCY_BUCKETS) == Frequency.quarterly
        assert classify_frequency(38) == Frequency.monthly
        assert classify_frequency(371, SINGLE_FREQUENCY_BUCKETS) is None


class TestClassifyConfidence:
    """Rules are evaluated in priority order."""

    @pytest.mark.parametrize("amount_ok,interval_ok,occurrences,expected", [
        (True, True, 4, Confidence.high),
        (True, False, 4, Confidence.medium),
        (False, True, 4, Confidence.medium),
        (True, True, 3, Confidence.medium),
        (False, False, 5, Confidence.medium),
        (False, False, 4, Confidence.low),
        (True, False, 3, Confidence.low),
        (True, True, 2, Confidence.low),
    ])
    def test_tiers(self, amount_ok, interval_ok, occurrences, expected):
        assert classify_confidence(amount_ok, interval_ok, occurrences) == expected


class TestComputeStatistics:

    def test_population_std_dev(self):
        """Intervals of 28 and 32 days have a population std dev of 2."""
        stats = compute_statistics(
            [date(2024, 1, 1), date(2024, 1, 29), date(2024, 3, 1)],
            [10, 10, 10],
        )
        assert stats.intervals == [28, 32]
        assert stats.avg_interval == 30
        assert stats.interval_std_dev == pytest.approx(2.0)
        assert stats.amount_std_dev == 0

    def test_amounts_are_absolute(self):
        stats = compute_statistics([date(2024, 1, 1), date(2024, 2, 1)], [-100, 100])
        assert stats.avg_amount == 100
        assert stats.amount_consistent()

    def test_amount_consistent_interval_inconsistent_is_medium(self):
        """Gaps of 10, 40 and 10 days with steady amounts land on medium."""
        stats = compute_statistics(
            [date(2024, 1, 1), date(2024, 1, 11), date(2024, 2, 20), date(2024, 3, 1)],
            [100, 100, 100, 110],
        )
        assert stats.amount_consistent(BULK_AMOUNT_RATIO_THRESHOLD)
        assert not stats.interval_consistent(BULK_INTERVAL_STDDEV_DAYS)
        confidence = classify_confidence(
            stats.amount_consistent(), stats.interval_consistent(), stats.occurrences
        )
        assert confidence == Confidence.medium

    def test_zero_average_amount(self):
        stats = GroupStatistics(occurrences=0)
        assert stats.amount_ratio == 0.0
        assert stats.amount_consistent()
