"""
Builds the final recurring list for a user from snapshots of everything the
engine knows: confirmed patterns, dismissals, income sources, override rules
and the current transaction window.

``reconcile`` is pure. Persisting the refreshed projections it reports back is
the caller's job.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from cadence.models.recurring import Frequency, Confidence, PatternSource
from cadence.services.detection import detect_basic_patterns
from cadence.services.merchant import (
    INCOME_KEY_WORDS,
    MATCH_KEY_WORDS,
    is_dismissed,
    key_word_count,
    keys_match_loose,
    keys_match_strict,
    normalize_merchant,
    transaction_key,
)
from cadence.services.projection import roll_forward
from cadence.services.rules import apply_rules
from cadence.services.snapshots import (
    IncomeSourceSnapshot,
    PatternSnapshot,
    RecurringItem,
    RuleSnapshot,
    TxnView,
)
from cadence.services.taxonomy import classify_bill_type, is_income_transaction

logger = logging.getLogger(__name__)

MIN_SURFACED_OCCURRENCES = 3

INCOME_SOURCE_MIN_SCORE = 0.7
INCOME_SOURCE_HIGH_SCORE = 0.8
OTHER_INCOME_MIN_AVERAGE = 500

YEARLY_FACTORS: Dict[Frequency, int] = {
    Frequency.weekly: 52,
    Frequency.biweekly: 26,
    Frequency.semimonthly: 24,
    Frequency.monthly: 12,
    Frequency.quarterly: 4,
    Frequency.yearly: 1,
    Frequency.irregular: 0,
}


@dataclass(frozen=True)
class ReconcileInput:
    today: date
    transactions: Tuple[TxnView, ...] = ()
    confirmed: Tuple[PatternSnapshot, ...] = ()
    dismissed_keys: Tuple[str, ...] = ()
    income_sources: Tuple[IncomeSourceSnapshot, ...] = ()
    rules: Tuple[RuleSnapshot, ...] = ()


@dataclass(frozen=True)
class PatternRefresh:
    """Refreshed values for a stored pattern whose projection went stale."""
    pattern_id: str
    next_expected_date: Optional[date]
    last_seen_date: Optional[date]
    occurrences: int
    average_amount: float


@dataclass
class ReconcileResult:
    items: List[RecurringItem] = field(default_factory=list)
    yearly_spend: float = 0.0
    used_confirmed: bool = False
    refreshes: List[PatternRefresh] = field(default_factory=list)


def _contains(haystack: Optional[str], needle: Optional[str]) -> bool:
    needle_lower = (needle or "").lower().strip()
    return bool(needle_lower) and needle_lower in (haystack or "").lower()


def _strict_match(pattern: PatternSnapshot, txn: TxnView) -> bool:
    words = min(max(key_word_count(pattern.merchant_key), MATCH_KEY_WORDS), INCOME_KEY_WORDS)
    if normalize_merchant(txn.descriptor, words) == pattern.merchant_key:
        return True
    return _contains(txn.raw_description, pattern.display_name) or _contains(txn.merchant_name, pattern.display_name)


def _loose_match(pattern: PatternSnapshot, txn: TxnView) -> bool:
    if keys_match_loose(transaction_key(txn), pattern.merchant_key):
        return True
    return (_contains(txn.raw_description, pattern.name)
            or _contains(txn.merchant_name, pattern.name)
            or _contains(txn.raw_description, pattern.display_name))


def match_pattern_transactions(pattern: PatternSnapshot, transactions: Sequence[TxnView]) -> List[TxnView]:
    """
    Transactions belonging to a confirmed pattern, sorted by date.

    Manually added patterns match strictly so a specific entry is not diluted
    by generic substring drift; AI and basic patterns match loosely.
    """
    matcher = _strict_match if pattern.source == PatternSource.manual else _loose_match
    matched = [t for t in transactions if t.ignore_type != "all" and matcher(pattern, t)]
    return sorted(matched, key=lambda t: t.date)


def _refresh_confirmed(pattern: PatternSnapshot, snapshot: ReconcileInput) -> Tuple[RecurringItem, Optional[PatternRefresh]]:
    matched = match_pattern_transactions(pattern, snapshot.transactions)

    if matched:
        average = round(sum(abs(t.amount) for t in matched) / len(matched), 2)
        latest = matched[-1].date
    else:
        average = pattern.average_amount
        latest = None

    if pattern.source == PatternSource.ai and matched:
        money_in = sum(1 for t in matched if t.amount < 0)
        is_income = money_in > len(matched) / 2
    else:
        is_income = pattern.is_income

    known = [d for d in (pattern.last_seen_date, latest) if d is not None]
    last_date = max(known) if known else None
    next_date = roll_forward(
        pattern.next_expected_date,
        pattern.last_seen_date,
        pattern.frequency,
        snapshot.today,
        pay_day=pattern.pay_day,
        latest_match=latest,
    )
    display_name, category = apply_rules(pattern.display_name, pattern.category, snapshot.rules)

    item = RecurringItem(
        id=pattern.id,
        merchant_key=pattern.merchant_key,
        name=pattern.name,
        display_name=display_name,
        frequency=pattern.frequency,
        amount=pattern.amount,
        average_amount=average,
        is_income=is_income,
        confidence=pattern.confidence,
        occurrences=len(matched),
        origin="confirmed",
        next_date=next_date,
        last_date=last_date,
        category=category,
        bill_type=pattern.bill_type or classify_bill_type(display_name, is_income),
        source=pattern.source,
        transaction_ids=tuple(t.id for t in matched),
    )

    refresh = None
    if next_date != pattern.next_expected_date or last_date != pattern.last_seen_date or len(matched) != pattern.occurrences:
        refresh = PatternRefresh(
            pattern_id=pattern.id,
            next_expected_date=next_date,
            last_seen_date=last_date,
            occurrences=len(matched),
            average_amount=average,
        )
    return item, refresh


def _income_source_item(source: IncomeSourceSnapshot, snapshot: ReconcileInput) -> RecurringItem:
    matched = sorted(
        (t for t in snapshot.transactions
         if t.ignore_type != "all" and is_income_transaction(t)
         and keys_match_strict(normalize_merchant(t.descriptor, INCOME_KEY_WORDS), source.merchant_key)),
        key=lambda t: t.date,
    )
    latest = matched[-1].date if matched else None
    average = round(sum(abs(t.amount) for t in matched) / len(matched), 2) if matched else source.average_amount
    confidence = Confidence.high if source.confidence_score >= INCOME_SOURCE_HIGH_SCORE else Confidence.medium

    return RecurringItem(
        id=f"income:{source.id}",
        merchant_key=source.merchant_key,
        name=source.name,
        display_name=source.name,
        frequency=source.frequency,
        amount=source.average_amount,
        average_amount=average,
        is_income=True,
        confidence=confidence,
        occurrences=len(matched),
        origin="income_source",
        next_date=roll_forward(
            source.next_expected_date,
            source.last_received_date,
            source.frequency,
            snapshot.today,
            pay_day=source.pay_day,
            latest_match=latest,
        ),
        last_date=latest or source.last_received_date,
        category="Income",
        bill_type="income",
        transaction_ids=tuple(t.id for t in matched),
    )


def _overlaps_income_item(name: str, items: Sequence[RecurringItem]) -> bool:
    name_lower = name.lower()
    for item in items:
        if not item.is_income:
            continue
        existing = item.display_name.lower()
        if existing in name_lower or name_lower in existing:
            return True
    return False


def yearly_cost(items: Sequence[RecurringItem]) -> float:
    """Annualized spend across expense items; income contributes nothing."""
    total = 0.0
    for item in items:
        if item.is_income:
            continue
        total += item.average_amount * YEARLY_FACTORS.get(Frequency(item.frequency), 0)
    return round(total, 2)


def reconcile(snapshot: ReconcileInput) -> ReconcileResult:
    result = ReconcileResult(used_confirmed=bool(snapshot.confirmed))

    # 1-2. Confirmed patterns are authoritative, otherwise basic detection
    if snapshot.confirmed:
        items = []
        for pattern in snapshot.confirmed:
            item, refresh = _refresh_confirmed(pattern, snapshot)
            items.append(item)
            if refresh is not None:
                result.refreshes.append(refresh)
    else:
        items = detect_basic_patterns(
            snapshot.transactions,
            snapshot.today,
            dismissed_keys=snapshot.dismissed_keys,
            rules=snapshot.rules,
        )

    # 3. Dismissals
    items = [item for item in items if not is_dismissed(item.merchant_key, snapshot.dismissed_keys)]

    # 4. Income sources
    for source in snapshot.income_sources:
        if source.confidence_score < INCOME_SOURCE_MIN_SCORE:
            continue
        if source.income_type == "other" and source.average_amount < OTHER_INCOME_MIN_AVERAGE:
            continue
        if is_dismissed(source.merchant_key, snapshot.dismissed_keys):
            continue
        if _overlaps_income_item(source.name, items):
            continue
        items.append(_income_source_item(source, snapshot))

    # 5. Patterns that stopped recurring fade out
    surfaced = [item for item in items if item.occurrences >= MIN_SURFACED_OCCURRENCES]
    dropped = len(items) - len(surfaced)
    if dropped:
        logger.debug("Safety filter dropped %d items under %d occurrences", dropped, MIN_SURFACED_OCCURRENCES)

    result.items = sorted(surfaced, key=lambda r: (r.next_date or date.max, r.display_name.lower()))
    result.yearly_spend = yearly_cost(result.items)
    return result
