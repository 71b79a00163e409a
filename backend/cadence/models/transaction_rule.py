"""
Transaction rule model: user-defined display name and category overrides.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, Integer
from cadence.database import Base


class TransactionRule(Base):
    """Rule that renames or re-categorizes transactions matching a pattern."""

    __tablename__ = "transaction_rules"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False, index=True)
    match_pattern = Column(String(255), nullable=False)
    match_field = Column(String(50), default="name", nullable=False)
    display_name = Column(String(255), nullable=True)
    set_category = Column(String(100), nullable=True)
    priority = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
