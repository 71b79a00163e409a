"""Service for income sources: detection, registration and monthly projections."""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional, Dict, Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cadence.errors import InputError, NotFoundError, PersistenceError
from cadence.models.income import IncomeSource, IncomeType
from cadence.models.recurring import Frequency, Confidence
from cadence.models.transaction import Transaction
from cadence.services import analysis_cache
from cadence.services.grouping import Direction, group_by_merchant, MIN_OCCURRENCES_AI
from cadence.services.merchant import INCOME_KEY_WORDS, is_dismissed, keys_match_strict, normalize_merchant
from cadence.services.projection import next_occurrence
from cadence.services.snapshots import TxnView
from cadence.services.taxonomy import classify_income_type
from cadence.services.recurring_service import load_dismissed_keys, load_transactions, remove_dismissal

logger = logging.getLogger(__name__)

MIN_DETECTED_AVERAGE = 50
AMOUNT_MATCH_TOLERANCE = 0.3
RECENT_INCOME_DAYS = 90

# Multipliers from a per-payment amount to a monthly amount
MONTHLY_MULTIPLIERS: Dict[Frequency, float] = {
    Frequency.weekly: 4.33,
    Frequency.biweekly: 2.17,
    Frequency.semimonthly: 2,
    Frequency.monthly: 1,
    Frequency.quarterly: 1 / 3,
    Frequency.yearly: 1 / 12,
    Frequency.irregular: 0,
}

# (low, high, frequency, confidence) on the average gap in days
GAP_BUCKETS = [
    (5, 9, Frequency.weekly, Confidence.high),
    (12, 14.5, Frequency.biweekly, Confidence.high),
    (14.5, 18, Frequency.semimonthly, Confidence.medium),
    (25, 35, Frequency.monthly, Confidence.high),
    (85, 100, Frequency.quarterly, Confidence.medium),
    (350, 380, Frequency.yearly, Confidence.medium),
]

_CONFIDENCE_ORDER = {Confidence.high: 0, Confidence.medium: 1, Confidence.low: 2}


@dataclass
class DetectedIncome:
    name: str
    merchant_key: str
    income_type: IncomeType
    amount: float
    frequency: Frequency
    occurrences: int
    last_date: date
    confidence: Confidence


def monthly_amount(amount: float, frequency: Frequency) -> float:
    return float(amount) * MONTHLY_MULTIPLIERS.get(Frequency(frequency), 0)


def _matches_source(txn: TxnView, merchant_key: str) -> bool:
    return keys_match_strict(normalize_merchant(txn.descriptor, INCOME_KEY_WORDS), merchant_key) or \
        keys_match_strict(normalize_merchant(txn.descriptor), merchant_key)


def _within_tolerance(amount: float, expected: float, tolerance: float) -> bool:
    if expected <= 0:
        return False
    return abs(abs(amount) - expected) / expected <= tolerance


def list_income_sources(db: Session, user_id: str, today: date) -> Dict[str, Any]:
    """Active sources with recent matching deposits and monthly/yearly stats."""
    sources = db.query(IncomeSource).filter(
        IncomeSource.user_id == user_id,
        IncomeSource.is_active == True,  # noqa: E712
    ).order_by(IncomeSource.income_type, IncomeSource.amount.desc()).all()

    recent = [
        t for t in load_transactions(db, user_id, since=today - timedelta(days=RECENT_INCOME_DAYS))
        if t.amount < 0
    ]

    by_type: Dict[str, Dict[str, float]] = {}
    monthly_total = 0.0
    entries = []
    for source in sources:
        monthly = monthly_amount(source.amount, source.frequency)
        monthly_total += monthly

        income_type = IncomeType(source.income_type).value
        bucket = by_type.setdefault(income_type, {"count": 0, "monthly": 0.0, "yearly": 0.0})
        bucket["count"] += 1
        bucket["monthly"] += monthly
        bucket["yearly"] += monthly * 12

        tolerance = 1.0 if source.frequency == Frequency.irregular else 0.5
        matching = [
            t for t in recent
            if _matches_source(t, source.merchant_key)
            and _within_tolerance(t.amount, float(source.amount), tolerance)
        ]
        entries.append({"source": source, "recent_transaction_ids": [t.id for t in matching[:10]]})

    return {
        "sources": entries,
        "stats": {
            "monthly_total": round(monthly_total, 2),
            "yearly_projection": round(monthly_total * 12, 2),
            "source_count": len(sources),
            "by_type": by_type,
        },
    }


def _classify_gap(avg_gap: float):
    for low, high, frequency, confidence in GAP_BUCKETS:
        if low <= avg_gap <= high:
            return frequency, confidence
    return Frequency.monthly, Confidence.low


def detect_income_sources(db: Session, user_id: str) -> List[DetectedIncome]:
    """
    Heuristic scan of money-in groups for income sources not yet registered.

    Dismissed merchants, refunds, transfers and groups averaging under 50
    are skipped.
    """
    deposits = [t for t in load_transactions(db, user_id) if t.amount < 0]
    groups = group_by_merchant(deposits, direction=Direction.any, min_occurrences=MIN_OCCURRENCES_AI)
    registered = [
        row.merchant_key for row in
        db.query(IncomeSource.merchant_key).filter(IncomeSource.user_id == user_id).all()
    ]
    dismissed = load_dismissed_keys(db, user_id)

    detected = []
    for key, txns in groups.items():
        if any(keys_match_strict(key, existing) for existing in registered):
            continue
        if is_dismissed(key, dismissed):
            continue
        amounts = [abs(t.amount) for t in txns]
        average = sum(amounts) / len(amounts)
        if average < MIN_DETECTED_AVERAGE:
            continue

        newest = txns[-1]
        income_type = classify_income_type(newest.raw_description)
        if income_type in (IncomeType.refund, IncomeType.transfer):
            continue

        gaps = [(txns[i + 1].date - txns[i].date).days for i in range(len(txns) - 1)]
        frequency, confidence = _classify_gap(sum(gaps) / len(gaps))

        spread = (max(amounts) - min(amounts)) / average
        if spread < 0.05:
            confidence = Confidence.high
        elif spread > 0.3:
            confidence = Confidence.low

        detected.append(DetectedIncome(
            name=newest.descriptor,
            merchant_key=key,
            income_type=income_type,
            amount=round(average, 2),
            frequency=frequency,
            occurrences=len(txns),
            last_date=newest.date,
            confidence=confidence,
        ))

    detected.sort(key=lambda d: (_CONFIDENCE_ORDER[d.confidence], -d.amount))
    return detected


def _annotate(db: Session, user_id: str, merchant_key: str, income_type: Optional[str], is_income: bool) -> int:
    views = load_transactions(db, user_id)
    ids = [t.id for t in views if t.amount < 0 and _matches_source(t, merchant_key)]
    if ids:
        db.query(Transaction).filter(
            Transaction.user_id == user_id,
            Transaction.id.in_(ids),
        ).update(
            {Transaction.is_income: is_income, Transaction.income_type: income_type},
            synchronize_session=False,
        )
    return len(ids)


def upsert_income_source(
    db: Session,
    user_id: str,
    name: str,
    income_type,
    amount: float,
    frequency,
    today: date,
    employer_name: Optional[str] = None,
    pay_day: Optional[int] = None,
    original_name: Optional[str] = None,
    notes: Optional[str] = None,
) -> IncomeSource:
    """
    Register or replace an income source keyed by its merchant key.

    History is taken from money-in transactions of the same merchant within
    30% of the expected amount. Registering lifts any dismissal of the merchant.
    """
    if not name or not amount:
        raise InputError("name, income_type, amount and frequency are required")
    try:
        income_type = IncomeType(income_type)
        frequency = Frequency(frequency)
    except ValueError as e:
        raise InputError(str(e))
    if income_type in (IncomeType.refund, IncomeType.transfer):
        raise InputError(f"Invalid income type: {income_type.value}")

    merchant_key = normalize_merchant(original_name, INCOME_KEY_WORDS) if original_name else normalize_merchant(name)
    if not merchant_key:
        raise InputError("name must contain letters or digits")

    expected = abs(float(amount))
    matching = sorted(
        (t for t in load_transactions(db, user_id)
         if t.amount < 0 and _matches_source(t, merchant_key)
         and _within_tolerance(t.amount, expected, AMOUNT_MATCH_TOLERANCE)),
        key=lambda t: t.date,
    )

    last_received = matching[-1].date if matching else today
    first_seen = matching[0].date if matching else today
    total = sum(abs(t.amount) for t in matching) or expected
    average = total / len(matching) if matching else expected

    try:
        source = db.query(IncomeSource).filter(
            IncomeSource.user_id == user_id,
            IncomeSource.merchant_key == merchant_key,
        ).first()
        if source is None:
            source = IncomeSource(user_id=user_id, merchant_key=merchant_key)
            db.add(source)

        source.name = name
        source.display_name = name
        source.income_type = income_type
        source.amount = Decimal(str(expected))
        source.average_amount = Decimal(str(round(average, 2)))
        source.frequency = frequency
        source.pay_day = pay_day
        source.employer_name = employer_name
        source.notes = notes
        source.next_expected_date = next_occurrence(last_received, frequency, pay_day)
        source.last_received_date = last_received
        source.first_seen_date = first_seen
        source.total_received = Decimal(str(round(total, 2)))
        source.occurrences = len(matching) or 1
        source.confidence = Confidence.high
        source.confidence_score = 1.0
        source.is_verified = True
        source.is_active = True

        remove_dismissal(db, user_id, merchant_key)
        _annotate(db, user_id, merchant_key, income_type.value, True)
        db.commit()
        db.refresh(source)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Income source upsert failed for user {user_id}, merchant {merchant_key}: {e}")
        raise PersistenceError("add income source", user_id, str(e)) from e

    analysis_cache.invalidate_on_recurring_update(db, user_id)
    return source


def get_income_source(db: Session, user_id: str, source_id: str) -> IncomeSource:
    source = db.query(IncomeSource).filter(
        IncomeSource.id == source_id,
        IncomeSource.user_id == user_id,
    ).first()
    if source is None:
        raise NotFoundError(f"Income source {source_id} not found")
    return source


def update_income_source(db: Session, user_id: str, source_id: str, updates: Dict[str, Any]) -> IncomeSource:
    """Partial update; a frequency change re-projects from the last received date."""
    source = get_income_source(db, user_id, source_id)
    if not updates:
        raise InputError("No valid updates")

    try:
        income_type = IncomeType(updates["income_type"]) if "income_type" in updates else None
        frequency = Frequency(updates["frequency"]) if "frequency" in updates else None
    except ValueError as e:
        raise InputError(str(e))
    if income_type in (IncomeType.refund, IncomeType.transfer):
        raise InputError(f"Invalid income type: {income_type.value}")

    for field in ("name", "display_name", "employer_name", "pay_day", "notes", "is_active"):
        if field in updates:
            setattr(source, field, updates[field])
    if income_type is not None:
        source.income_type = income_type
    if "amount" in updates:
        source.amount = Decimal(str(abs(updates["amount"])))
        source.average_amount = source.amount
    if frequency is not None:
        source.frequency = frequency
        if source.frequency == Frequency.irregular:
            source.next_expected_date = None
        elif source.last_received_date:
            source.next_expected_date = next_occurrence(
                source.last_received_date, source.frequency, source.pay_day
            )

    try:
        db.commit()
        db.refresh(source)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Income source update failed for user {user_id}, source {source_id}: {e}")
        raise PersistenceError("update income source", user_id, str(e)) from e

    analysis_cache.invalidate_on_recurring_update(db, user_id)
    return source


def delete_income_source(db: Session, user_id: str, source_id: str) -> None:
    """Delete a source and clear the income annotation on its transactions."""
    source = get_income_source(db, user_id, source_id)
    merchant_key = source.merchant_key
    try:
        db.delete(source)
        _annotate(db, user_id, merchant_key, None, False)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Income source delete failed for user {user_id}, source {source_id}: {e}")
        raise PersistenceError("delete income source", user_id, str(e)) from e

    analysis_cache.invalidate_on_recurring_update(db, user_id)
