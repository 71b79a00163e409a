"""Pydantic schemas for recurring patterns, suggestions and analysis."""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date, datetime

from cadence.models.recurring import Frequency, Confidence, PatternSource, SuggestionStatus


class RecurringItemResponse(BaseModel):
    """One reconciled recurring item as shown to the user."""
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
    origin: str
    next_date: str  # ISO date, 9999-12-31 when there is no projection
    last_date: Optional[date] = None
    category: Optional[str] = None
    bill_type: Optional[str] = None
    source: Optional[PatternSource] = None
    transaction_ids: List[str] = []


class RecurringOverviewResponse(BaseModel):
    recurring_items: List[RecurringItemResponse]
    yearly_spend_estimate: float
    count: int
    pending_suggestion_count: int
    ai_powered: bool
    last_analyzed_at: Optional[str] = None
    has_confirmed_patterns: bool = False


class AnalyzeRequest(BaseModel):
    force: bool = False


class AnalyzeResponse(BaseModel):
    """Re-analysis result; same shape as the overview plus cache metadata."""
    status: str = "ok"
    message: Optional[str] = None
    recurring_items: List[RecurringItemResponse] = []
    yearly_spend_estimate: float = 0.0
    count: int = 0
    pending_suggestion_count: int = 0
    ai_powered: bool = False
    last_analyzed_at: Optional[str] = None
    has_confirmed_patterns: bool = False
    from_cache: bool = False
    new_suggestions: int = 0
    ai_error: bool = False
    cached_at: Optional[str] = None
    expires_at: Optional[str] = None


class RecurringPatternCreate(BaseModel):
    """Manual add. ``original_name`` gives income patterns a more specific key."""
    name: str = Field(..., min_length=1, max_length=255)
    amount: float
    frequency: Frequency
    is_income: bool = False
    category: Optional[str] = None
    next_date: Optional[date] = None
    original_name: Optional[str] = None
    pay_day: Optional[int] = Field(None, ge=1, le=31)


class RecurringPatternUpdate(BaseModel):
    frequency: Optional[Frequency] = None
    amount: Optional[float] = None
    next_date: Optional[date] = None


class RecurringDismissRequest(BaseModel):
    merchant_pattern: str = Field(..., min_length=1)
    original_name: Optional[str] = None
    reason: Optional[str] = None


class RecurringDismissResponse(BaseModel):
    success: bool = True
    merchant_key: str


class RecurringPatternResponse(BaseModel):
    id: str
    merchant_key: str
    name: str
    display_name: str
    frequency: Frequency
    amount: float
    average_amount: float
    is_income: bool
    pay_day: Optional[int] = None
    next_expected_date: Optional[date] = None
    last_seen_date: Optional[date] = None
    category: Optional[str] = None
    confidence: Confidence
    occurrences: int
    bill_type: Optional[str] = None
    source: PatternSource
    last_analyzed_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class SuggestionResponse(BaseModel):
    id: str
    merchant_key: str
    name: str
    display_name: Optional[str] = None
    frequency: Optional[Frequency] = None
    amount: Optional[float] = None
    average_amount: Optional[float] = None
    is_income: bool
    next_expected_date: Optional[date] = None
    last_seen_date: Optional[date] = None
    category: Optional[str] = None
    confidence: Confidence
    occurrences: int
    bill_type: Optional[str] = None
    detection_reason: Optional[str] = None
    status: SuggestionStatus
    reviewed_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class SuggestionListResponse(BaseModel):
    items: List[SuggestionResponse]
    total: int


class ReviewRequest(BaseModel):
    suggestion_ids: List[str] = Field(..., min_length=1)
    action: str = Field(..., pattern="^(confirm|deny)$")
    denial_reason: Optional[str] = None


class ReviewResponse(BaseModel):
    confirmed: int
    denied: int
    failed: int = 0
    not_found: int = 0
    pending_count: int
    message: str


class ClearSuggestionsResponse(BaseModel):
    deleted: int


class CacheInvalidateResponse(BaseModel):
    invalidated: bool


class TransactionAnalysisResponse(BaseModel):
    """Single-transaction recurrence verdict for the transaction detail view."""
    transaction_id: str
    is_recurring: bool
    confidence: Confidence
    frequency: Optional[Frequency] = None
    average_amount: float
    occurrences: int
    reason: str
