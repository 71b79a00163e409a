"""
Recurring pattern database models.
"""

import uuid
from datetime import datetime
from sqlalchemy import (
    Column, String, Boolean, DateTime, Date, Numeric, Enum, Integer, Text, JSON, UniqueConstraint
)
import enum
from cadence.database import Base


class Frequency(str, enum.Enum):
    """Recurring frequency enumeration."""
    weekly = "weekly"
    biweekly = "bi-weekly"
    semimonthly = "semi-monthly"
    monthly = "monthly"
    quarterly = "quarterly"
    yearly = "yearly"
    irregular = "irregular"


class Confidence(str, enum.Enum):
    """Confidence tier of a detected pattern."""
    high = "high"
    medium = "medium"
    low = "low"


class PatternSource(str, enum.Enum):
    """Where a confirmed pattern came from."""
    manual = "manual"
    ai = "ai"
    basic = "basic"


class SuggestionStatus(str, enum.Enum):
    """Review state of an AI suggestion."""
    pending = "pending"
    confirmed = "confirmed"
    denied = "denied"


class RecurringPattern(Base):
    """Confirmed recurring obligation (subscription, bill, loan or income)."""

    __tablename__ = "recurring_patterns"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False, index=True)
    merchant_key = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    display_name = Column(String(255), nullable=False)
    frequency = Column(Enum(Frequency), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    average_amount = Column(Numeric(12, 2), nullable=False)
    is_income = Column(Boolean, default=False, nullable=False)
    pay_day = Column(Integer, nullable=True)  # Day-of-month anchor
    next_expected_date = Column(Date, nullable=True)
    last_seen_date = Column(Date, nullable=True)
    category = Column(String(100), nullable=True)
    confidence = Column(Enum(Confidence), default=Confidence.medium, nullable=False)
    occurrences = Column(Integer, default=0, nullable=False)
    bill_type = Column(String(50), nullable=True)
    source = Column(Enum(PatternSource), default=PatternSource.manual, nullable=False)
    last_analyzed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "merchant_key", name="uq_recurring_pattern_user_key"),
    )


class RecurringSuggestion(Base):
    """Pending pattern proposed by the AI-assisted detector."""

    __tablename__ = "recurring_suggestions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False, index=True)
    merchant_key = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    display_name = Column(String(255), nullable=True)
    frequency = Column(Enum(Frequency), nullable=True)
    amount = Column(Numeric(12, 2), nullable=True)
    average_amount = Column(Numeric(12, 2), nullable=True)
    is_income = Column(Boolean, default=False, nullable=False)
    pay_day = Column(Integer, nullable=True)
    next_expected_date = Column(Date, nullable=True)
    last_seen_date = Column(Date, nullable=True)
    category = Column(String(100), nullable=True)
    confidence = Column(Enum(Confidence), default=Confidence.medium, nullable=False)
    occurrences = Column(Integer, default=0, nullable=False)
    bill_type = Column(String(50), nullable=True)
    detection_reason = Column(Text, nullable=True)
    status = Column(Enum(SuggestionStatus), default=SuggestionStatus.pending, nullable=False, index=True)
    reviewed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "merchant_key", name="uq_recurring_suggestion_user_key"),
    )


class RecurringDismissal(Base):
    """A user's explicit rejection of a merchant, binding on all detectors."""

    __tablename__ = "recurring_dismissals"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False, index=True)
    merchant_key = Column(String(255), nullable=False)
    original_name = Column(String(255), nullable=True)
    reason = Column(String(255), nullable=True)
    denial_reason = Column(Text, nullable=True)
    keywords = Column(JSON, nullable=True)  # Advisory only
    dismissed_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "merchant_key", name="uq_recurring_dismissal_user_key"),
    )
