"""
Transaction database model.

Transactions are owned by the bank-sync collaborator. The recurring engine only
reads them, apart from annotating ``is_income``/``income_type`` when an income
pattern is confirmed or deleted.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, Date, Numeric, Text, Enum, Index
import enum
from cadence.database import Base


class IgnoreType(str, enum.Enum):
    """How far a user-ignored transaction is hidden."""
    none = "none"
    budget = "budget"
    all = "all"


class Transaction(Base):
    """Transaction model."""

    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)  # Negative = money in, positive = money out
    raw_description = Column(Text, nullable=False)
    merchant_name = Column(String(255), nullable=True)
    display_name = Column(String(255), nullable=True)  # User override
    category = Column(String(100), nullable=True)
    is_income = Column(Boolean, nullable=True)  # None = no explicit flag
    income_type = Column(String(50), nullable=True)
    ignore_type = Column(Enum(IgnoreType), default=IgnoreType.none, nullable=False)
    account_id = Column(String(36), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("idx_transaction_user_date", "user_id", "date"),
    )
