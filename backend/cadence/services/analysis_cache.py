"""
Per-user cache of the AI-assisted recurring analysis.

A cache outage must never fail a read: store errors are logged and reported
as a miss.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cadence.config import settings
from cadence.models.analysis_cache import AnalysisCacheEntry

logger = logging.getLogger(__name__)

CACHE_PREFIX = "recurring:detection"


def cache_key(user_id: str) -> str:
    return f"{CACHE_PREFIX}:{user_id}"


def get(db: Session, user_id: str, now: datetime) -> Optional[AnalysisCacheEntry]:
    """Unexpired entry for the user, or None. Expired rows are removed."""
    try:
        entry = db.query(AnalysisCacheEntry).filter(
            AnalysisCacheEntry.cache_key == cache_key(user_id)
        ).first()
        if entry is None:
            return None
        if entry.expires_at <= now:
            db.delete(entry)
            db.commit()
            return None
        return entry
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"Analysis cache read failed for user {user_id}: {e}")
        return None


def put(
    db: Session,
    user_id: str,
    payload: Dict[str, Any],
    now: datetime,
    ttl_seconds: Optional[int] = None,
) -> Optional[AnalysisCacheEntry]:
    ttl = settings.recurring_analysis_cache_ttl_seconds if ttl_seconds is None else ttl_seconds
    try:
        entry = db.query(AnalysisCacheEntry).filter(
            AnalysisCacheEntry.cache_key == cache_key(user_id)
        ).first()
        if entry is None:
            entry = AnalysisCacheEntry(cache_key=cache_key(user_id), user_id=user_id)
            db.add(entry)
        entry.payload = payload
        entry.cached_at = now
        entry.expires_at = now + timedelta(seconds=ttl)
        db.commit()
        db.refresh(entry)
        return entry
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"Analysis cache write failed for user {user_id}: {e}")
        return None


def invalidate(db: Session, user_id: str) -> bool:
    """Drop the user's cached analysis. Returns whether an entry existed."""
    try:
        deleted = db.query(AnalysisCacheEntry).filter(
            AnalysisCacheEntry.cache_key == cache_key(user_id)
        ).delete(synchronize_session=False)
        db.commit()
        return bool(deleted)
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"Analysis cache invalidation failed for user {user_id}: {e}")
        return False


def invalidate_on_transaction_update(db: Session, user_id: str) -> bool:
    """New or edited transactions make the cached analysis stale."""
    logger.info(f"Invalidating recurring analysis for user {user_id} after transaction update")
    return invalidate(db, user_id)


def invalidate_on_recurring_update(db: Session, user_id: str) -> bool:
    """Any pattern, suggestion or dismissal write makes the cached analysis stale."""
    return invalidate(db, user_id)
