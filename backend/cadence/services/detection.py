"""
Unsupervised recurring detection and the single-transaction recurrence helper.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Sequence

from cadence.models.recurring import Frequency, Confidence
from cadence.services.grouping import group_by_merchant, MIN_OCCURRENCES_BASIC
from cadence.services.merchant import is_dismissed, transaction_key
from cadence.services.projection import roll_forward
from cadence.services.rules import apply_rules
from cadence.services.snapshots import RecurringItem, RuleSnapshot
from cadence.services.statistics import (
    BULK_AMOUNT_RATIO_THRESHOLD,
    BULK_INTERVAL_STDDEV_DAYS,
    SINGLE_AMOUNT_RATIO_THRESHOLD,
    SINGLE_INTERVAL_STDDEV_DAYS,
    SINGLE_FREQUENCY_BUCKETS,
    classify_confidence,
    classify_frequency,
    statistics_for,
)
from cadence.services.taxonomy import (
    classify_bill_type,
    is_excluded_from_bills,
    is_income_transaction,
    is_legitimate_income_merchant,
    is_transfer,
)

logger = logging.getLogger(__name__)


def excluded_from_detection(txn) -> bool:
    """Ignored, transfer and shopping transactions never anchor a pattern."""
    if txn.ignore_type == "all":
        return True
    name = txn.descriptor
    if is_transfer(name, txn.category) and not (txn.amount < 0 and is_legitimate_income_merchant(name)):
        return True
    if is_income_transaction(txn):
        return False
    return is_excluded_from_bills(name, txn.category, txn.amount)


def detect_basic_patterns(
    transactions: Iterable,
    today: date,
    dismissed_keys: Sequence[str] = (),
    rules: Sequence[RuleSnapshot] = (),
) -> List[RecurringItem]:
    """
    Heuristic detector used when no confirmed patterns exist.

    Requires at least three occurrences per merchant, a recognizable
    frequency, and medium or high confidence.
    """
    groups = group_by_merchant(
        transactions,
        key_fn=transaction_key,
        min_occurrences=MIN_OCCURRENCES_BASIC,
        exclude=excluded_from_detection,
    )

    recurring: List[RecurringItem] = []
    for key, txns in groups.items():
        if is_dismissed(key, dismissed_keys):
            continue

        stats = statistics_for(txns)
        frequency = classify_frequency(stats.avg_interval)
        if frequency is None:
            continue

        confidence = classify_confidence(
            stats.amount_consistent(BULK_AMOUNT_RATIO_THRESHOLD),
            stats.interval_consistent(BULK_INTERVAL_STDDEV_DAYS),
            stats.occurrences,
        )
        # Low confidence needs the AI-assisted path and explicit confirmation
        if confidence == Confidence.low:
            continue

        first, last = txns[0], txns[-1]
        income_count = sum(1 for t in txns if is_income_transaction(t))
        is_income = income_count > len(txns) / 2
        display_name, category = apply_rules(first.descriptor, first.category, rules)

        recurring.append(RecurringItem(
            id=f"basic:{key}",
            merchant_key=key,
            name=first.raw_description,
            display_name=display_name,
            frequency=frequency,
            amount=abs(float(last.amount)),
            average_amount=round(stats.avg_amount, 2),
            is_income=is_income,
            confidence=confidence,
            occurrences=stats.occurrences,
            origin="basic",
            next_date=roll_forward(None, last.date, frequency, today),
            last_date=last.date,
            category=category,
            bill_type=classify_bill_type(display_name, is_income),
            transaction_ids=tuple(t.id for t in txns),
        ))

    logger.debug("Basic detection found %d patterns in %d groups", len(recurring), len(groups))
    return sorted(recurring, key=lambda r: (r.next_date or date.max, r.merchant_key))


@dataclass
class RecurrenceAnalysis:
    """Verdict of the single-transaction helper."""
    is_recurring: bool
    confidence: Confidence
    frequency: Optional[Frequency]
    average_amount: float
    occurrences: int
    reason: str


def analyze_transaction_recurrence(transaction, history: Sequence) -> RecurrenceAnalysis:
    """
    Judge whether one transaction looks recurring given its merchant history.

    Uses the stricter single-transaction thresholds, not the bulk detector's.
    """
    if len(history) < 2:
        return RecurrenceAnalysis(
            is_recurring=False,
            confidence=Confidence.low,
            frequency=None,
            average_amount=abs(float(transaction.amount)),
            occurrences=1,
            reason="Not enough transaction history to determine pattern",
        )

    stats = statistics_for(history)
    frequency = classify_frequency(stats.avg_interval, SINGLE_FREQUENCY_BUCKETS)
    amount_consistent = stats.amount_consistent(SINGLE_AMOUNT_RATIO_THRESHOLD)
    interval_consistent = stats.interval_consistent(SINGLE_INTERVAL_STDDEV_DAYS)
    cadence = frequency.value if frequency else "irregular"
    average = f"${stats.avg_amount:,.2f}"

    if amount_consistent and interval_consistent and stats.occurrences >= 3:
        return RecurrenceAnalysis(True, Confidence.high, frequency, stats.avg_amount, stats.occurrences,
                                  f"Consistent {cadence} payments of ~{average}")
    if amount_consistent and stats.occurrences >= 3:
        return RecurrenceAnalysis(True, Confidence.medium, frequency, stats.avg_amount, stats.occurrences,
                                  f"Similar amounts (~{average}) but varying schedule")
    if interval_consistent and stats.occurrences >= 3:
        return RecurrenceAnalysis(True, Confidence.medium, frequency, stats.avg_amount, stats.occurrences,
                                  f"Regular {cadence} schedule but amounts vary")
    if stats.occurrences >= 4:
        return RecurrenceAnalysis(True, Confidence.low, frequency, stats.avg_amount, stats.occurrences,
                                  "Multiple occurrences but inconsistent pattern")
    return RecurrenceAnalysis(False, Confidence.low, frequency, stats.avg_amount, stats.occurrences,
                              "Not enough evidence of recurring pattern")
