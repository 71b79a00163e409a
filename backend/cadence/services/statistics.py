"""
Interval and amount statistics, frequency bucketing and confidence tiers.

The bulk detector and the single-transaction helper intentionally use
different consistency thresholds. They are kept as separate constants; do not
merge them without a product decision, detection results depend on both.
"""

import math
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Sequence

from cadence.models.recurring import Frequency, Confidence

# Bulk (unsupervised) detector
BULK_AMOUNT_RATIO_THRESHOLD = 0.2
BULK_INTERVAL_STDDEV_DAYS = 10

# Single-transaction analyzer shown on the transaction detail view
SINGLE_AMOUNT_RATIO_THRESHOLD = 0.15
SINGLE_INTERVAL_STDDEV_DAYS = 7

# Inclusive upper bounds on the average interval, first match wins
FREQUENCY_BUCKETS = [
    (10, Frequency.weekly),
    (20, Frequency.biweekly),
    (40, Frequency.monthly),
    (100, Frequency.quarterly),
    (400, Frequency.yearly),
]

SINGLE_FREQUENCY_BUCKETS = [
    (8, Frequency.weekly),
    (16, Frequency.biweekly),
    (35, Frequency.monthly),
    (95, Frequency.quarterly),
    (370, Frequency.yearly),
]


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _std_dev(values: Sequence[float], mean: float) -> float:
    """Population standard deviation."""
    if not values:
        return 0.0
    return math.sqrt(sum((v - mean) ** 2 for v in values) / len(values))


@dataclass
class GroupStatistics:
    """Gap and amount statistics for one merchant group."""
    occurrences: int
    intervals: List[int] = field(default_factory=list)
    avg_interval: float = 0.0
    interval_std_dev: float = 0.0
    amounts: List[float] = field(default_factory=list)
    avg_amount: float = 0.0
    amount_std_dev: float = 0.0

    @property
    def amount_ratio(self) -> float:
        if self.avg_amount == 0:
            return math.inf if self.amount_std_dev else 0.0
        return self.amount_std_dev / self.avg_amount

    def amount_consistent(self, threshold: float = BULK_AMOUNT_RATIO_THRESHOLD) -> bool:
        return self.amount_ratio < threshold

    def interval_consistent(self, threshold: float = BULK_INTERVAL_STDDEV_DAYS) -> bool:
        return self.interval_std_dev < threshold


def compute_statistics(dates: Sequence[date], amounts: Sequence[float]) -> GroupStatistics:
    """
    Statistics over a date-sorted group.

    Intervals are whole days between consecutive dates; amounts are absolute.
    """
    intervals = [(dates[i + 1] - dates[i]).days for i in range(len(dates) - 1)]
    abs_amounts = [abs(float(a)) for a in amounts]

    avg_interval = _mean(intervals)
    avg_amount = _mean(abs_amounts)

    return GroupStatistics(
        occurrences=len(dates),
        intervals=intervals,
        avg_interval=avg_interval,
        interval_std_dev=_std_dev(intervals, avg_interval),
        amounts=abs_amounts,
        avg_amount=avg_amount,
        amount_std_dev=_std_dev(abs_amounts, avg_amount),
    )


def statistics_for(transactions: Sequence) -> GroupStatistics:
    ordered = sorted(transactions, key=lambda t: t.date)
    return compute_statistics([t.date for t in ordered], [t.amount for t in ordered])


def classify_frequency(avg_interval: float, buckets=FREQUENCY_BUCKETS) -> Optional[Frequency]:
    """Frequency bucket for an average interval, or None when out of range."""
    for upper_bound, frequency in buckets:
        if avg_interval <= upper_bound:
            return frequency
    return None


def classify_confidence(amount_consistent: bool, interval_consistent: bool, occurrences: int) -> Confidence:
    """Confidence tier, rules evaluated in priority order."""
    if amount_consistent and interval_consistent and occurrences >= 4:
        return Confidence.high
    if (amount_consistent or interval_consistent) and occurrences >= 4:
        return Confidence.medium
    if amount_consistent and interval_consistent and occurrences >= 3:
        return Confidence.medium
    if occurrences >= 5:
        return Confidence.medium
    return Confidence.low
