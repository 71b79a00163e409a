"""Immutable read snapshots handed to the pure detection and reconcile functions."""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Tuple

from cadence.models.recurring import Frequency, Confidence, PatternSource


@dataclass(frozen=True)
class TxnView:
    """Read-only view of a bank transaction. Negative amount = money in."""
    id: str
    raw_description: str
    amount: float
    date: date
    merchant_name: Optional[str] = None
    display_name: Optional[str] = None
    category: Optional[str] = None
    is_income: Optional[bool] = None
    ignore_type: str = "none"

    @property
    def descriptor(self) -> str:
        """Best available descriptor: user display name, merchant, raw text."""
        return self.display_name or self.merchant_name or self.raw_description or ""

    @classmethod
    def from_model(cls, txn) -> "TxnView":
        ignore = txn.ignore_type.value if hasattr(txn.ignore_type, "value") else (txn.ignore_type or "none")
        return cls(
            id=str(txn.id),
            raw_description=txn.raw_description or "",
            amount=float(txn.amount),
            date=txn.date,
            merchant_name=txn.merchant_name,
            display_name=txn.display_name,
            category=txn.category,
            is_income=txn.is_income,
            ignore_type=ignore,
        )


@dataclass(frozen=True)
class PatternSnapshot:
    """Confirmed pattern as stored, before refreshing against transactions."""
    id: str
    merchant_key: str
    name: str
    display_name: str
    frequency: Frequency
    amount: float
    average_amount: float
    is_income: bool = False
    next_expected_date: Optional[date] = None
    last_seen_date: Optional[date] = None
    category: Optional[str] = None
    confidence: Confidence = Confidence.medium
    occurrences: int = 0
    bill_type: Optional[str] = None
    source: PatternSource = PatternSource.manual
    pay_day: Optional[int] = None
    last_analyzed_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, pattern) -> "PatternSnapshot":
        return cls(
            id=str(pattern.id),
            merchant_key=pattern.merchant_key or "",
            name=pattern.name,
            display_name=pattern.display_name or pattern.name,
            frequency=Frequency(pattern.frequency),
            amount=float(pattern.amount or 0),
            average_amount=float(pattern.average_amount or 0),
            is_income=bool(pattern.is_income),
            next_expected_date=pattern.next_expected_date,
            last_seen_date=pattern.last_seen_date,
            category=pattern.category,
            confidence=Confidence(pattern.confidence or Confidence.medium),
            occurrences=pattern.occurrences or 0,
            bill_type=pattern.bill_type,
            source=PatternSource(pattern.source or PatternSource.manual),
            pay_day=pattern.pay_day,
            last_analyzed_at=pattern.last_analyzed_at,
        )


@dataclass(frozen=True)
class IncomeSourceSnapshot:
    id: str
    name: str
    merchant_key: str
    income_type: str
    frequency: Frequency
    average_amount: float
    confidence_score: float
    next_expected_date: Optional[date] = None
    last_received_date: Optional[date] = None
    occurrences: int = 0
    pay_day: Optional[int] = None

    @classmethod
    def from_model(cls, source) -> "IncomeSourceSnapshot":
        income_type = source.income_type.value if hasattr(source.income_type, "value") else source.income_type
        return cls(
            id=str(source.id),
            name=source.display_name or source.name,
            merchant_key=source.merchant_key or "",
            income_type=income_type or "other",
            frequency=Frequency(source.frequency),
            average_amount=float(source.average_amount or 0),
            confidence_score=float(source.confidence_score or 0),
            next_expected_date=source.next_expected_date,
            last_received_date=source.last_received_date,
            occurrences=source.occurrences or 0,
            pay_day=source.pay_day,
        )


@dataclass(frozen=True)
class RuleSnapshot:
    match_pattern: str
    display_name: Optional[str] = None
    set_category: Optional[str] = None

    @classmethod
    def from_model(cls, rule) -> "RuleSnapshot":
        return cls(
            match_pattern=rule.match_pattern,
            display_name=rule.display_name,
            set_category=rule.set_category,
        )


@dataclass(frozen=True)
class RecurringItem:
    """One entry of the reconciled recurring list."""
    id: str
    merchant_key: str
    name: str
    display_name: str
    frequency: Frequency
    amount: float
    average_amount: float
    is_income: bool
    confidence: Confidence
    occurrences: int
    origin: str  # "confirmed", "basic" or "income_source"
    next_date: Optional[date] = None
    last_date: Optional[date] = None
    category: Optional[str] = None
    bill_type: Optional[str] = None
    source: Optional[PatternSource] = None
    transaction_ids: Tuple[str, ...] = ()
