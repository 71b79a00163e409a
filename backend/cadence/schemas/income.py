"""Pydantic schemas for income sources."""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from datetime import date, datetime

from cadence.models.income import IncomeType
from cadence.models.recurring import Frequency, Confidence


class IncomeSourceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    income_type: IncomeType
    amount: float
    frequency: Frequency
    employer_name: Optional[str] = None
    pay_day: Optional[int] = Field(None, ge=1, le=31)
    original_name: Optional[str] = None
    notes: Optional[str] = None


class IncomeSourceUpdate(BaseModel):
    name: Optional[str] = None
    display_name: Optional[str] = None
    income_type: Optional[IncomeType] = None
    amount: Optional[float] = None
    frequency: Optional[Frequency] = None
    employer_name: Optional[str] = None
    pay_day: Optional[int] = Field(None, ge=1, le=31)
    notes: Optional[str] = None
    is_active: Optional[bool] = None


class IncomeSourceResponse(BaseModel):
    id: str
    merchant_key: str
    name: str
    display_name: Optional[str] = None
    income_type: IncomeType
    amount: float
    average_amount: float
    frequency: Frequency
    pay_day: Optional[int] = None
    employer_name: Optional[str] = None
    next_expected_date: Optional[date] = None
    last_received_date: Optional[date] = None
    first_seen_date: Optional[date] = None
    total_received: float
    occurrences: int
    confidence: Confidence
    confidence_score: float
    is_verified: bool
    is_active: bool
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class IncomeSourceWithHistory(IncomeSourceResponse):
    recent_transaction_ids: List[str] = []


class IncomeTypeStats(BaseModel):
    count: int
    monthly: float
    yearly: float


class IncomeStats(BaseModel):
    monthly_total: float
    yearly_projection: float
    source_count: int
    by_type: Dict[str, IncomeTypeStats]


class IncomeListResponse(BaseModel):
    sources: List[IncomeSourceWithHistory]
    stats: IncomeStats


class DetectedIncomeResponse(BaseModel):
    name: str
    merchant_key: str
    income_type: IncomeType
    amount: float
    frequency: Frequency
    occurrences: int
    last_date: date
    confidence: Confidence

    class Config:
        from_attributes = True


class DetectedIncomeList(BaseModel):
    detected: List[DetectedIncomeResponse]
    count: int
