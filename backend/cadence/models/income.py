"""
Income source database model.
"""

import uuid
from datetime import datetime
from sqlalchemy import (
    Column, String, Boolean, DateTime, Date, Numeric, Enum, Integer, Text, Float, UniqueConstraint
)
import enum
from cadence.database import Base
from cadence.models.recurring import Frequency, Confidence


class IncomeType(str, enum.Enum):
    """Income taxonomy, in keyword-matching order."""
    payroll = "payroll"
    government = "government"
    retirement = "retirement"
    self_employment = "self_employment"
    investment = "investment"
    rental = "rental"
    refund = "refund"
    transfer = "transfer"
    other = "other"


class IncomeSource(Base):
    """Income-specific recurring pattern, maintained alongside RecurringPattern."""

    __tablename__ = "income_sources"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False, index=True)
    merchant_key = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    display_name = Column(String(255), nullable=True)
    income_type = Column(Enum(IncomeType), default=IncomeType.other, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    average_amount = Column(Numeric(12, 2), nullable=False)
    frequency = Column(Enum(Frequency), nullable=False)
    pay_day = Column(Integer, nullable=True)
    employer_name = Column(String(255), nullable=True)
    next_expected_date = Column(Date, nullable=True)
    last_received_date = Column(Date, nullable=True)
    first_seen_date = Column(Date, nullable=True)
    total_received = Column(Numeric(14, 2), default=0, nullable=False)
    occurrences = Column(Integer, default=0, nullable=False)
    confidence = Column(Enum(Confidence), default=Confidence.high, nullable=False)
    confidence_score = Column(Float, default=1.0, nullable=False)  # 0.0 - 1.0
    is_verified = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "merchant_key", name="uq_income_source_user_key"),
    )
