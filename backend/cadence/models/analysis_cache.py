"""
Keyed store backing the recurring analysis cache.
"""

from datetime import datetime
from sqlalchemy import Column, String, DateTime, JSON
from cadence.database import Base


class AnalysisCacheEntry(Base):
    """One cached analysis payload with an absolute expiry."""

    __tablename__ = "analysis_cache"

    cache_key = Column(String(255), primary_key=True)
    user_id = Column(String(36), nullable=False, index=True)
    payload = Column(JSON, nullable=False)
    cached_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)
