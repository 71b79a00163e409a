"""
FastAPI dependencies.
"""

from datetime import date, datetime
from typing import Optional

from fastapi import Header, HTTPException
from cadence.database import get_db  # noqa: F401


def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    """
    User partition for every request.

    Authentication happens upstream; the gateway forwards the user id in the
    ``X-User-Id`` header.
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return x_user_id.strip()


def get_today() -> date:
    return date.today()


def get_now() -> datetime:
    return datetime.utcnow()
