"""Tests for unsupervised detection and the single-transaction helper."""

from datetime import date

import pytest

from cadence.models.recurring import Frequency, Confidence
from cadence.services.detection import (
    analyze_transaction_recurrence,
    detect_basic_patterns,
    excluded_from_detection,
)
from cadence.services.snapshots import RuleSnapshot
from factories import monthly_series, txn_view, weekly_series

TODAY = date(2024, 6, 20)

NETFLIX_DATES = [
    date(2023, 12, 14), date(2024, 1, 15), date(2024, 2, 16),
    date(2024, 3, 14), date(2024, 4, 15), date(2024, 5, 16),
]


@pytest.fixture
def netflix():
    return [txn_view("NETFLIX.COM", 15.99, d, id=f"nf-{i}") for i, d in enumerate(NETFLIX_DATES)]


class TestDetectBasicPatterns:

    def test_monthly_subscription(self, netflix):
        items = detect_basic_patterns(netflix, TODAY)
        assert len(items) == 1
        item = items[0]
        assert item.id == "basic:netflixcom"
        assert item.merchant_key == "netflixcom"
        assert item.frequency == Frequency.monthly
        assert item.confidence == Confidence.high
        assert item.occurrences == 6
        assert item.amount == 15.99
        assert item.average_amount == 15.99
        assert item.next_date == date(2024, 7, 16)
        assert item.last_date == date(2024, 5, 16)
        assert item.bill_type == "subscription"
        assert not item.is_income
        assert item.origin == "basic"
        assert item.transaction_ids == tuple(f"nf-{i}" for i in range(6))

    def test_input_order_does_not_matter(self, netflix):
        assert detect_basic_patterns(list(reversed(netflix)), TODAY) == detect_basic_patterns(netflix, TODAY)

    def test_shopping_is_excluded(self):
        txns = monthly_series("WALMART SUPERCENTER", 85, date(2024, 1, 10), 6)
        assert detect_basic_patterns(txns, TODAY) == []

    def test_gig_purchases_are_excluded(self):
        txns = weekly_series("UBER TRIP", 42, date(2024, 4, 1), 6)
        assert detect_basic_patterns(txns, TODAY) == []

    def test_gig_deposits_are_income(self):
        txns = weekly_series("UBER", -310, date(2024, 4, 1), 6)
        items = detect_basic_patterns(txns, TODAY)
        assert len(items) == 1
        assert items[0].is_income
        assert items[0].frequency == Frequency.weekly
        assert items[0].bill_type == "income"
        assert items[0].next_date == date(2024, 6, 24)

    def test_two_occurrences_are_not_enough(self, netflix):
        assert detect_basic_patterns(netflix[-2:], TODAY) == []

    def test_dismissed_merchant(self, netflix):
        assert detect_basic_patterns(netflix, TODAY, dismissed_keys=["netflixcom"]) == []

    def test_rules_override_name_and_category(self, netflix):
        rules = [RuleSnapshot(match_pattern="netflix", display_name="Netflix", set_category="Streaming")]
        item = detect_basic_patterns(netflix, TODAY, rules=rules)[0]
        assert item.display_name == "Netflix"
        assert item.category == "Streaming"
        assert item.name == "NETFLIX.COM"

    def test_low_confidence_dropped(self):
        dates = [date(2024, 1, 1), date(2024, 1, 11), date(2024, 3, 1), date(2024, 5, 30)]
        amounts = [20, 45, 80, 12]
        txns = [txn_view("BOBS LAWN CARE", a, d) for a, d in zip(amounts, dates)]
        assert detect_basic_patterns(txns, TODAY) == []

    def test_out_of_range_interval_dropped(self):
        txns = [txn_view("DMV RENEWAL", 50, d) for d in (date(2020, 1, 1), date(2021, 6, 1), date(2022, 11, 1))]
        assert detect_basic_patterns(txns, TODAY) == []

    def test_fully_ignored_transactions(self):
        txns = [txn_view("NETFLIX.COM", 15.99, d, ignore_type="all") for d in NETFLIX_DATES]
        assert detect_basic_patterns(txns, TODAY) == []

    def test_sorted_by_next_date(self, netflix):
        spotify = monthly_series("SPOTIFY USA", 10.99, date(2024, 1, 5), 6)
        items = detect_basic_patterns(netflix + spotify, TODAY)
        assert [i.merchant_key for i in items] == ["spotify usa", "netflixcom"]
        assert items[0].next_date == date(2024, 7, 5)


class TestExcludedFromDetection:

    def test_transfer(self):
        assert excluded_from_detection(txn_view("ONLINE TRANSFER TO SAVINGS", 500, TODAY))

    def test_income_never_excluded(self):
        assert not excluded_from_detection(txn_view("ACME CORP PAYROLL", -2000, TODAY))

    def test_bill(self):
        assert not excluded_from_detection(txn_view("CITY WATER DEPT", 60, TODAY))


class TestAnalyzeTransactionRecurrence:
    """Uses the stricter single-transaction thresholds."""

    def test_not_enough_history(self):
        txn = txn_view("NETFLIX.COM", 15.99, TODAY)
        result = analyze_transaction_recurrence(txn, [txn])
        assert not result.is_recurring
        assert result.confidence == Confidence.low
        assert result.frequency is None
        assert result.reason == "Not enough transaction history to determine pattern"

    def test_consistent(self):
        history = monthly_series("NETFLIX.COM", 15.99, date(2024, 1, 15), 4)
        result = analyze_transaction_recurrence(history[-1], history)
        assert result.is_recurring
        assert result.confidence == Confidence.high
        assert result.frequency == Frequency.monthly
        assert result.occurrences == 4
        assert result.reason == "Consistent monthly payments of ~$15.99"

    def test_amounts_vary(self):
        dates = [date(2024, 1, 15), date(2024, 2, 15), date(2024, 3, 15), date(2024, 4, 15)]
        history = [txn_view("CITY ELECTRIC", a, d) for a, d in zip([40, 80, 120, 60], dates)]
        result = analyze_transaction_recurrence(history[-1], history)
        assert result.is_recurring
        assert result.confidence == Confidence.medium
        assert result.reason == "Regular monthly schedule but amounts vary"

    def test_schedule_varies(self):
        dates = [date(2024, 1, 1), date(2024, 1, 11), date(2024, 3, 1), date(2024, 5, 30)]
        history = [txn_view("GYM DAY PASS", 25, d) for d in dates]
        result = analyze_transaction_recurrence(history[-1], history)
        assert result.is_recurring
        assert result.confidence == Confidence.medium
        assert result.reason == "Similar amounts (~$25.00) but varying schedule"

    def test_inconsistent_but_frequent(self):
        dates = [date(2024, 1, 1), date(2024, 1, 11), date(2024, 3, 1), date(2024, 5, 30)]
        history = [txn_view("BOBS LAWN CARE", a, d) for a, d in zip([20, 45, 80, 12], dates)]
        result = analyze_transaction_recurrence(history[-1], history)
        assert result.is_recurring
        assert result.confidence == Confidence.low
        assert result.reason == "Multiple occurrences but inconsistent pattern"

    def test_inconsistent_and_rare(self):
        dates = [date(2024, 1, 1), date(2024, 1, 11), date(2024, 3, 1)]
        history = [txn_view("BOBS LAWN CARE", a, d) for a, d in zip([20, 45, 80], dates)]
        result = analyze_transaction_recurrence(history[-1], history)
        assert not result.is_recurring
        assert result.reason == "Not enough evidence of recurring pattern"
