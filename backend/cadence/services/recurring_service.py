"""Service for recurring pattern detection, review and management."""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional, Dict, Any, Sequence

from dateutil.relativedelta import relativedelta
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cadence.config import settings
from cadence.errors import InputError, NotFoundError, PersistenceError, UpstreamUnavailable
from cadence.models.income import IncomeSource
from cadence.models.recurring import (
    RecurringPattern, RecurringSuggestion, RecurringDismissal,
    Frequency, Confidence, PatternSource, SuggestionStatus,
)
from cadence.models.transaction import Transaction, IgnoreType
from cadence.models.transaction_rule import TransactionRule
from cadence.services import analysis_cache
from cadence.services.ai_detection import build_merchant_summaries, detect_with_ai
from cadence.services.detection import analyze_transaction_recurrence
from cadence.services.merchant import (
    INCOME_KEY_WORDS,
    extract_keywords,
    is_dismissed,
    keys_match_loose,
    normalize_merchant,
    transaction_key,
)
from cadence.services.projection import next_occurrence, roll_forward, to_wire_date
from cadence.services.reconciler import ReconcileInput, match_pattern_transactions, reconcile
from cadence.services.snapshots import (
    IncomeSourceSnapshot,
    PatternSnapshot,
    RecurringItem,
    RuleSnapshot,
    TxnView,
)
from cadence.services.taxonomy import classify_income_type

logger = logging.getLogger(__name__)


# --- snapshot loading -------------------------------------------------------

def load_transactions(
    db: Session,
    user_id: str,
    since: Optional[date] = None,
    limit: Optional[int] = None,
) -> List[TxnView]:
    """Transactions for a user, newest first, excluding fully ignored ones."""
    query = db.query(Transaction).filter(
        Transaction.user_id == user_id,
        Transaction.ignore_type != IgnoreType.all,
    )
    if since is not None:
        query = query.filter(Transaction.date >= since)
    query = query.order_by(Transaction.date.desc())
    if limit:
        query = query.limit(limit)
    return [TxnView.from_model(t) for t in query.all()]


def load_dismissed_keys(db: Session, user_id: str) -> List[str]:
    """Dismissed merchant keys. A failed lookup degrades to no dismissals."""
    try:
        rows = db.query(RecurringDismissal.merchant_key).filter(
            RecurringDismissal.user_id == user_id
        ).all()
        return [row.merchant_key for row in rows]
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"Dismissal lookup failed for user {user_id}: {e}")
        return []


def load_rules(db: Session, user_id: str) -> List[RuleSnapshot]:
    """Active override rules, highest priority first. Failures degrade to none."""
    try:
        rules = db.query(TransactionRule).filter(
            TransactionRule.user_id == user_id,
            TransactionRule.is_active == True,  # noqa: E712
        ).order_by(TransactionRule.priority.desc(), TransactionRule.created_at).all()
        return [RuleSnapshot.from_model(r) for r in rules]
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"Rule lookup failed for user {user_id}: {e}")
        return []


def load_income_sources(db: Session, user_id: str) -> List[IncomeSourceSnapshot]:
    try:
        sources = db.query(IncomeSource).filter(
            IncomeSource.user_id == user_id,
            IncomeSource.is_active == True,  # noqa: E712
        ).all()
        return [IncomeSourceSnapshot.from_model(s) for s in sources]
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"Income source lookup failed for user {user_id}: {e}")
        return []


def count_pending_suggestions(db: Session, user_id: str) -> int:
    try:
        return db.query(RecurringSuggestion).filter(
            RecurringSuggestion.user_id == user_id,
            RecurringSuggestion.status == SuggestionStatus.pending,
        ).count()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"Pending suggestion count failed for user {user_id}: {e}")
        return 0


# --- serialization ----------------------------------------------------------

def serialize_item(item: RecurringItem) -> Dict[str, Any]:
    """JSON-ready dict for one recurring item, also used as the cache payload."""
    return {
        "id": item.id,
        "merchant_key": item.merchant_key,
        "name": item.name,
        "display_name": item.display_name,
        "frequency": Frequency(item.frequency).value,
        "amount": round(float(item.amount), 2),
        "average_amount": round(float(item.average_amount), 2),
        "is_income": item.is_income,
        "confidence": Confidence(item.confidence).value,
        "occurrences": item.occurrences,
        "origin": item.origin,
        "next_date": to_wire_date(item.next_date),
        "last_date": item.last_date.isoformat() if item.last_date else None,
        "category": item.category,
        "bill_type": item.bill_type,
        "source": item.source.value if item.source else None,
        "transaction_ids": list(item.transaction_ids),
    }


# --- read path --------------------------------------------------------------

def _persist_refreshes(db: Session, user_id: str, result) -> None:
    """Write back self-healed projections. Failure here must not fail the read."""
    if not result.refreshes:
        return
    try:
        by_id = {r.pattern_id: r for r in result.refreshes}
        patterns = db.query(RecurringPattern).filter(
            RecurringPattern.user_id == user_id,
            RecurringPattern.id.in_(list(by_id)),
        ).all()
        for pattern in patterns:
            refresh = by_id[pattern.id]
            pattern.next_expected_date = refresh.next_expected_date
            pattern.last_seen_date = refresh.last_seen_date
            pattern.occurrences = refresh.occurrences
            pattern.average_amount = Decimal(str(refresh.average_amount))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"Could not persist refreshed projections for user {user_id}: {e}")


def build_overview(db: Session, user_id: str, today: date) -> Dict[str, Any]:
    """Reconcile everything known about the user into the recurring list."""
    confirmed = db.query(RecurringPattern).filter(
        RecurringPattern.user_id == user_id
    ).all()
    since = today - relativedelta(months=settings.display_lookback_months)

    snapshot = ReconcileInput(
        today=today,
        transactions=tuple(load_transactions(db, user_id, since=since)),
        confirmed=tuple(PatternSnapshot.from_model(p) for p in confirmed),
        dismissed_keys=tuple(load_dismissed_keys(db, user_id)),
        income_sources=tuple(load_income_sources(db, user_id)),
        rules=tuple(load_rules(db, user_id)),
    )
    result = reconcile(snapshot)
    _persist_refreshes(db, user_id, result)

    analyzed = [p.last_analyzed_at for p in confirmed if p.last_analyzed_at]
    return {
        "recurring_items": [serialize_item(item) for item in result.items],
        "yearly_spend_estimate": result.yearly_spend,
        "count": len(result.items),
        "has_confirmed_patterns": result.used_confirmed,
        "ai_powered": any(p.source == PatternSource.ai for p in confirmed),
        "last_analyzed_at": max(analyzed).isoformat() if analyzed else None,
    }


def get_recurring_overview(db: Session, user_id: str, today: date) -> Dict[str, Any]:
    """
    The recurring list a user sees.

    Only the confirmed-pattern and transaction lookups are essential; a
    failure there is a PersistenceError. Everything else degrades.
    """
    try:
        overview = build_overview(db, user_id, today)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Recurring read failed for user {user_id}: {e}")
        raise PersistenceError("read recurring", user_id, str(e)) from e

    overview["pending_suggestion_count"] = count_pending_suggestions(db, user_id)
    return overview


# --- re-analysis ------------------------------------------------------------

def _find_summary(key: str, summaries):
    if key in summaries:
        return summaries[key]
    for summary_key, summary in summaries.items():
        if keys_match_loose(key, summary_key):
            return summary
    return None


def _upsert_suggestions(db: Session, user_id: str, suggestions, summaries, dismissed_keys, today: date) -> int:
    existing_keys = {
        row.merchant_key for row in
        db.query(RecurringPattern.merchant_key).filter(RecurringPattern.user_id == user_id).all()
    }

    written = 0
    seen = set()
    for suggestion in suggestions:
        key = suggestion.merchant_key
        if is_dismissed(key, dismissed_keys) or key in existing_keys or key in seen:
            continue
        seen.add(key)

        summary = _find_summary(key, summaries)
        last_seen = summary.dates[0] if summary and summary.dates else None
        occurrences = summary.count if summary else 0

        row = db.query(RecurringSuggestion).filter(
            RecurringSuggestion.user_id == user_id,
            RecurringSuggestion.merchant_key == key,
        ).first()
        if row is None:
            row = RecurringSuggestion(user_id=user_id, merchant_key=key)
            db.add(row)

        row.name = suggestion.name
        row.display_name = suggestion.display_name
        row.frequency = suggestion.frequency
        row.amount = Decimal(str(suggestion.amount))
        row.average_amount = Decimal(str(suggestion.average_amount))
        row.is_income = suggestion.is_income
        row.last_seen_date = last_seen
        row.next_expected_date = roll_forward(None, last_seen, suggestion.frequency, today) if last_seen else None
        row.category = suggestion.category or (summary.category if summary else None)
        row.confidence = suggestion.confidence
        row.occurrences = occurrences
        row.bill_type = suggestion.bill_type
        row.detection_reason = (
            f"AI detected {occurrences} transactions with {suggestion.confidence.value} confidence"
        )
        row.status = SuggestionStatus.pending
        row.reviewed_at = None
        written += 1

    db.commit()
    return written


async def reanalyze(
    db: Session,
    user_id: str,
    today: date,
    now: datetime,
    force: bool = False,
) -> Dict[str, Any]:
    """
    Cached AI-assisted re-analysis.

    Without ``force`` an unexpired cached result is returned as-is. A failed
    AI call is reported through ``ai_error`` and the basic list is returned.
    """
    if not force:
        cached = analysis_cache.get(db, user_id, now)
        if cached is not None:
            result = dict(cached.payload)
            result["from_cache"] = True
            result["pending_suggestion_count"] = count_pending_suggestions(db, user_id)
            return result

    since = today - relativedelta(months=settings.ai_lookback_months)
    transactions = load_transactions(db, user_id, since=since, limit=settings.ai_max_transactions)
    if len(transactions) < settings.ai_min_transactions:
        logger.info(f"Not enough history for AI analysis for user {user_id}: {len(transactions)} transactions")
        return {
            "status": "not_enough_history",
            "message": "Not enough transaction history for AI analysis",
            "recurring_items": [],
            "yearly_spend_estimate": 0.0,
            "count": 0,
            "ai_powered": False,
            "last_analyzed_at": None,
            "pending_suggestion_count": count_pending_suggestions(db, user_id),
            "from_cache": False,
            "new_suggestions": 0,
        }

    dismissed_keys = load_dismissed_keys(db, user_id)
    ai_error = False
    new_suggestions = 0

    if settings.ai_recurring_detection:
        summaries = build_merchant_summaries(transactions, dismissed_keys)
        try:
            suggestions = await detect_with_ai(summaries)
        except UpstreamUnavailable as e:
            logger.warning(f"AI re-analysis unavailable for user {user_id}, using basic detection: {e}")
            ai_error = True
            suggestions = []

        try:
            new_suggestions = _upsert_suggestions(db, user_id, suggestions, summaries, dismissed_keys, today)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Writing suggestions failed for user {user_id}: {e}")
            raise PersistenceError("write suggestions", user_id, str(e)) from e

    overview = get_recurring_overview(db, user_id, today)
    overview.update({
        "status": "ok",
        "ai_powered": settings.ai_recurring_detection and not ai_error,
        "last_analyzed_at": now.isoformat(),
        "new_suggestions": new_suggestions,
        "ai_error": ai_error,
        "message": f"Found {new_suggestions} new suggestions to review" if new_suggestions else "No new suggestions",
    })

    # A failed AI pass is not cached so the next request retries it
    if not ai_error:
        payload = {k: v for k, v in overview.items() if k not in ("from_cache", "pending_suggestion_count")}
        entry = analysis_cache.put(db, user_id, payload, now)
        if entry is not None:
            overview["cached_at"] = entry.cached_at.isoformat()
            overview["expires_at"] = entry.expires_at.isoformat()

    overview["from_cache"] = False
    return overview


# --- suggestions ------------------------------------------------------------

def list_suggestions(db: Session, user_id: str, status: SuggestionStatus = SuggestionStatus.pending) -> List[RecurringSuggestion]:
    return db.query(RecurringSuggestion).filter(
        RecurringSuggestion.user_id == user_id,
        RecurringSuggestion.status == status,
    ).order_by(RecurringSuggestion.created_at.desc()).all()


def clear_pending_suggestions(db: Session, user_id: str) -> int:
    try:
        deleted = db.query(RecurringSuggestion).filter(
            RecurringSuggestion.user_id == user_id,
            RecurringSuggestion.status == SuggestionStatus.pending,
        ).delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Clearing suggestions failed for user {user_id}: {e}")
        raise PersistenceError("clear suggestions", user_id, str(e)) from e
    analysis_cache.invalidate_on_recurring_update(db, user_id)
    return deleted


def remove_dismissal(db: Session, user_id: str, merchant_key: str) -> int:
    """Remove every dismissal that would still hide ``merchant_key``."""
    dismissals = db.query(RecurringDismissal).filter(RecurringDismissal.user_id == user_id).all()
    removed = 0
    for dismissal in dismissals:
        if is_dismissed(merchant_key, [dismissal.merchant_key]):
            db.delete(dismissal)
            removed += 1
    return removed


def _drop_dismissed_patterns(db: Session, user_id: str, merchant_key: str) -> int:
    """Delete confirmed patterns hidden by a dismissal of ``merchant_key``."""
    patterns = db.query(RecurringPattern).filter(RecurringPattern.user_id == user_id).all()
    dropped = 0
    for pattern in patterns:
        if not is_dismissed(pattern.merchant_key, [merchant_key]):
            continue
        if pattern.is_income:
            _unflag_income_transactions(db, user_id, pattern.merchant_key)
        db.delete(pattern)
        dropped += 1
    if dropped:
        logger.info(f"Dropped {dropped} confirmed patterns dismissed by {merchant_key!r}")
    return dropped


def _upsert_dismissal(
    db: Session,
    user_id: str,
    merchant_key: str,
    original_name: Optional[str],
    reason: Optional[str],
    now: datetime,
    denial_reason: Optional[str] = None,
) -> RecurringDismissal:
    dismissal = db.query(RecurringDismissal).filter(
        RecurringDismissal.user_id == user_id,
        RecurringDismissal.merchant_key == merchant_key,
    ).first()
    if dismissal is None:
        dismissal = RecurringDismissal(user_id=user_id, merchant_key=merchant_key)
        db.add(dismissal)
    dismissal.original_name = original_name
    dismissal.reason = reason
    dismissal.denial_reason = denial_reason
    dismissal.keywords = extract_keywords(original_name or merchant_key)
    dismissal.dismissed_at = now
    return dismissal


def _pattern_from_suggestion(db: Session, suggestion: RecurringSuggestion, now: datetime) -> RecurringPattern:
    """Upsert by merchant key, so confirming twice updates rather than duplicates."""
    pattern = db.query(RecurringPattern).filter(
        RecurringPattern.user_id == suggestion.user_id,
        RecurringPattern.merchant_key == suggestion.merchant_key,
    ).first()
    if pattern is None:
        pattern = RecurringPattern(user_id=suggestion.user_id, merchant_key=suggestion.merchant_key)
        db.add(pattern)

    pattern.name = suggestion.name
    pattern.display_name = suggestion.display_name or suggestion.name
    pattern.frequency = suggestion.frequency or Frequency.monthly
    pattern.amount = suggestion.amount or Decimal("0")
    pattern.average_amount = suggestion.average_amount or pattern.amount
    pattern.is_income = bool(suggestion.is_income)
    pattern.pay_day = suggestion.pay_day
    pattern.next_expected_date = suggestion.next_expected_date
    pattern.last_seen_date = suggestion.last_seen_date
    pattern.category = suggestion.category
    pattern.confidence = suggestion.confidence
    pattern.occurrences = suggestion.occurrences or 0
    pattern.bill_type = suggestion.bill_type
    pattern.source = PatternSource.ai
    pattern.last_analyzed_at = now
    return pattern


def review_suggestions(
    db: Session,
    user_id: str,
    suggestion_ids: Sequence[str],
    action: str,
    now: datetime,
    denial_reason: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Confirm or deny a batch of suggestions.

    Each item commits on its own: one failing item does not block the others,
    and the counts report what actually happened.
    """
    if action not in ("confirm", "deny"):
        raise InputError(f"Unknown review action: {action}")
    if not suggestion_ids:
        raise InputError("suggestion_ids must not be empty")

    confirmed = denied = failed = not_found = 0

    for suggestion_id in suggestion_ids:
        suggestion = db.query(RecurringSuggestion).filter(
            RecurringSuggestion.id == suggestion_id,
            RecurringSuggestion.user_id == user_id,
        ).first()
        if suggestion is None:
            not_found += 1
            continue

        key = suggestion.merchant_key
        try:
            if action == "confirm":
                remove_dismissal(db, user_id, key)
                pattern = _pattern_from_suggestion(db, suggestion, now)
                suggestion.status = SuggestionStatus.confirmed
                suggestion.reviewed_at = now
                db.flush()
                if pattern.is_income:
                    annotate_income_transactions(db, user_id, pattern)
                db.commit()
                confirmed += 1
            else:
                _upsert_dismissal(
                    db, user_id, key,
                    original_name=suggestion.name,
                    reason="denied_suggestion",
                    now=now,
                    denial_reason=denial_reason,
                )
                _drop_dismissed_patterns(db, user_id, key)
                suggestion.status = SuggestionStatus.denied
                suggestion.reviewed_at = now
                db.commit()
                denied += 1
        except SQLAlchemyError as e:
            db.rollback()
            failed += 1
            logger.error(f"Review {action} failed for user {user_id}, merchant {key}: {e}")

    if confirmed or denied:
        analysis_cache.invalidate_on_recurring_update(db, user_id)

    parts = []
    if confirmed:
        parts.append(f"Confirmed {confirmed} recurring pattern{'s' if confirmed != 1 else ''}")
    if denied:
        parts.append(f"Denied {denied} suggestion{'s' if denied != 1 else ''}")

    return {
        "confirmed": confirmed,
        "denied": denied,
        "failed": failed,
        "not_found": not_found,
        "pending_count": count_pending_suggestions(db, user_id),
        "message": ". ".join(parts) if parts else "No suggestions were updated",
    }


# --- manual patterns --------------------------------------------------------

def annotate_income_transactions(db: Session, user_id: str, pattern: RecurringPattern) -> int:
    """Flag the transactions behind a confirmed income pattern as income."""
    snapshot = PatternSnapshot.from_model(pattern)
    views = load_transactions(db, user_id)
    ids = [t.id for t in match_pattern_transactions(snapshot, views) if t.amount < 0 or t.is_income]
    if not ids:
        return 0
    income_type = classify_income_type(pattern.name).value
    db.query(Transaction).filter(
        Transaction.user_id == user_id,
        Transaction.id.in_(ids),
    ).update(
        {Transaction.is_income: True, Transaction.income_type: income_type},
        synchronize_session=False,
    )
    logger.info(f"Annotated {len(ids)} transactions as {income_type} income for user {user_id}")
    return len(ids)


def _validate_frequency(value) -> Frequency:
    try:
        return Frequency(value)
    except ValueError:
        raise InputError(f"Invalid frequency: {value}")


def add_manual_pattern(
    db: Session,
    user_id: str,
    name: str,
    amount: float,
    frequency,
    today: date,
    is_income: bool = False,
    category: Optional[str] = None,
    next_date: Optional[date] = None,
    original_name: Optional[str] = None,
    pay_day: Optional[int] = None,
) -> RecurringPattern:
    """
    Manually add (or re-add) a recurring pattern.

    Income patterns registered with the bank's original descriptor use a longer
    key so a paycheck does not match unrelated purchases at the same merchant.
    Re-adding a dismissed merchant removes its dismissal.
    """
    if not name or not name.strip():
        raise InputError("name is required")
    if not amount:
        raise InputError("amount is required")
    frequency = _validate_frequency(frequency)

    if is_income and original_name:
        merchant_key = normalize_merchant(original_name, INCOME_KEY_WORDS)
    else:
        merchant_key = normalize_merchant(name)
    if not merchant_key:
        raise InputError("name must contain letters or digits")

    if next_date is None:
        next_date = next_occurrence(today, frequency, pay_day)

    try:
        remove_dismissal(db, user_id, merchant_key)

        pattern = db.query(RecurringPattern).filter(
            RecurringPattern.user_id == user_id,
            RecurringPattern.merchant_key == merchant_key,
        ).first()
        if pattern is None:
            pattern = RecurringPattern(user_id=user_id, merchant_key=merchant_key)
            db.add(pattern)

        pattern.name = name.strip()
        pattern.display_name = name.strip()
        pattern.frequency = frequency
        pattern.amount = Decimal(str(abs(amount)))
        pattern.average_amount = Decimal(str(abs(amount)))
        pattern.is_income = bool(is_income)
        pattern.pay_day = pay_day
        pattern.next_expected_date = next_date
        pattern.last_seen_date = today
        pattern.category = category
        pattern.confidence = Confidence.high
        pattern.occurrences = 1
        pattern.bill_type = "income" if is_income else "bill"
        pattern.source = PatternSource.manual
        pattern.last_analyzed_at = None
        db.commit()
        db.refresh(pattern)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Manual add failed for user {user_id}, merchant {merchant_key}: {e}")
        raise PersistenceError("add pattern", user_id, str(e)) from e

    analysis_cache.invalidate_on_recurring_update(db, user_id)
    logger.info(f"Added manual pattern {merchant_key!r} for user {user_id}")
    return pattern


def get_pattern(db: Session, user_id: str, pattern_id: str) -> RecurringPattern:
    pattern = db.query(RecurringPattern).filter(
        RecurringPattern.id == pattern_id,
        RecurringPattern.user_id == user_id,
    ).first()
    if pattern is None:
        raise NotFoundError(f"Recurring pattern {pattern_id} not found")
    return pattern


def update_pattern(
    db: Session,
    user_id: str,
    pattern_id: str,
    frequency=None,
    amount: Optional[float] = None,
    next_date: Optional[date] = None,
) -> RecurringPattern:
    """
    Edit frequency, amount or next date.

    A frequency change re-projects the next date from the last seen date; an
    explicit ``next_date`` wins over that projection.
    """
    if frequency is None and amount is None and next_date is None:
        raise InputError("No valid updates provided")

    pattern = get_pattern(db, user_id, pattern_id)

    if frequency is not None:
        pattern.frequency = _validate_frequency(frequency)
        if pattern.last_seen_date:
            pattern.next_expected_date = next_occurrence(
                pattern.last_seen_date, pattern.frequency, pattern.pay_day
            )
    if amount is not None:
        pattern.amount = Decimal(str(abs(amount)))
        pattern.average_amount = Decimal(str(abs(amount)))
    if next_date is not None:
        pattern.next_expected_date = next_date

    try:
        db.commit()
        db.refresh(pattern)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Pattern update failed for user {user_id}, pattern {pattern_id}: {e}")
        raise PersistenceError("update pattern", user_id, str(e)) from e

    analysis_cache.invalidate_on_recurring_update(db, user_id)
    return pattern


def _unflag_income_transactions(db: Session, user_id: str, merchant_key: str) -> int:
    flagged = db.query(Transaction).filter(
        Transaction.user_id == user_id,
        Transaction.is_income == True,  # noqa: E712
    ).all()
    ids = [t.id for t in flagged if keys_match_loose(transaction_key(TxnView.from_model(t)), merchant_key)]
    if ids:
        db.query(Transaction).filter(Transaction.id.in_(ids)).update(
            {Transaction.is_income: False}, synchronize_session=False
        )
        logger.info(f"Unset is_income on {len(ids)} transactions for pattern {merchant_key!r}")
    return len(ids)


def delete_pattern(
    db: Session,
    user_id: str,
    merchant_pattern: str,
    now: datetime,
    original_name: Optional[str] = None,
    reason: Optional[str] = None,
) -> str:
    """
    Dismiss a merchant: record the dismissal and drop any confirmed pattern.

    When the pattern was income its transactions lose the income flag so the
    basic detector does not bring it straight back.
    """
    if not merchant_pattern or not normalize_merchant(merchant_pattern, INCOME_KEY_WORDS):
        raise InputError("merchant_pattern is required")

    candidates = {normalize_merchant(merchant_pattern, INCOME_KEY_WORDS), normalize_merchant(merchant_pattern)}
    try:
        existing = db.query(RecurringPattern).filter(
            RecurringPattern.user_id == user_id,
            RecurringPattern.merchant_key.in_(candidates),
        ).first()
        merchant_key = existing.merchant_key if existing else normalize_merchant(merchant_pattern)
        was_income = bool(existing and existing.is_income)

        _upsert_dismissal(db, user_id, merchant_key, original_name, reason, now)
        if existing is not None:
            db.delete(existing)
        if was_income:
            _unflag_income_transactions(db, user_id, merchant_key)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Dismiss failed for user {user_id}, merchant {merchant_pattern!r}: {e}")
        raise PersistenceError("delete pattern", user_id, str(e)) from e

    analysis_cache.invalidate_on_recurring_update(db, user_id)
    logger.info(f"Dismissed merchant {merchant_key!r} for user {user_id}")
    return merchant_key


# --- single transaction -----------------------------------------------------

def analyze_transaction(db: Session, user_id: str, transaction_id: str):
    """Recurrence verdict for one transaction against its merchant history."""
    txn = db.query(Transaction).filter(
        Transaction.id == transaction_id,
        Transaction.user_id == user_id,
    ).first()
    if txn is None:
        raise NotFoundError(f"Transaction {transaction_id} not found")

    view = TxnView.from_model(txn)
    key = transaction_key(view)
    history = [t for t in load_transactions(db, user_id) if key and transaction_key(t) == key]
    return analyze_transaction_recurrence(view, sorted(history, key=lambda t: t.date))
