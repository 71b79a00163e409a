"""API endpoints for recurring pattern detection and management."""

from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from cadence.dependencies import get_db, get_current_user_id, get_today, get_now
from cadence.errors import InputError
from cadence.models.recurring import SuggestionStatus
from cadence.schemas.recurring import (
    RecurringOverviewResponse,
    AnalyzeRequest,
    AnalyzeResponse,
    RecurringPatternCreate,
    RecurringPatternUpdate,
    RecurringPatternResponse,
    RecurringDismissRequest,
    RecurringDismissResponse,
    SuggestionResponse,
    SuggestionListResponse,
    ReviewRequest,
    ReviewResponse,
    ClearSuggestionsResponse,
    CacheInvalidateResponse,
    TransactionAnalysisResponse,
)
from cadence.services import analysis_cache, recurring_service

router = APIRouter(prefix="/recurring", tags=["recurring"])


@router.get("", response_model=RecurringOverviewResponse)
def get_recurring(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    today: date = Depends(get_today),
):
    """Reconciled recurring list with yearly spend and pending suggestion count."""
    return recurring_service.get_recurring_overview(db, user_id, today)


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze_recurring(
    data: AnalyzeRequest = AnalyzeRequest(),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    today: date = Depends(get_today),
    now: datetime = Depends(get_now),
):
    """Run (or return the cached) AI-assisted re-analysis."""
    return await recurring_service.reanalyze(db, user_id, today, now, force=data.force)


@router.put("", response_model=RecurringPatternResponse)
def add_recurring_pattern(
    data: RecurringPatternCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    today: date = Depends(get_today),
):
    """Manually add a recurring pattern."""
    try:
        return recurring_service.add_manual_pattern(
            db,
            user_id,
            name=data.name,
            amount=data.amount,
            frequency=data.frequency,
            today=today,
            is_income=data.is_income,
            category=data.category,
            next_date=data.next_date,
            original_name=data.original_name,
            pay_day=data.pay_day,
        )
    except InputError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/{pattern_id}", response_model=RecurringPatternResponse)
def update_recurring_pattern(
    pattern_id: str,
    data: RecurringPatternUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Edit frequency, amount or next date of a pattern."""
    try:
        return recurring_service.update_pattern(
            db,
            user_id,
            pattern_id,
            frequency=data.frequency,
            amount=data.amount,
            next_date=data.next_date,
        )
    except InputError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("", response_model=RecurringDismissResponse)
def dismiss_recurring_pattern(
    data: RecurringDismissRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    now: datetime = Depends(get_now),
):
    """Dismiss a merchant so no detector surfaces it again."""
    try:
        merchant_key = recurring_service.delete_pattern(
            db,
            user_id,
            data.merchant_pattern,
            now,
            original_name=data.original_name,
            reason=data.reason,
        )
    except InputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return RecurringDismissResponse(merchant_key=merchant_key)


@router.get("/suggestions", response_model=SuggestionListResponse)
def list_suggestions(
    status: SuggestionStatus = Query(SuggestionStatus.pending),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """List AI suggestions by review status."""
    suggestions = recurring_service.list_suggestions(db, user_id, status)
    return SuggestionListResponse(
        items=[SuggestionResponse.model_validate(s) for s in suggestions],
        total=len(suggestions),
    )


@router.post("/suggestions/review", response_model=ReviewResponse)
def review_suggestions(
    data: ReviewRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    now: datetime = Depends(get_now),
):
    """Confirm or deny a batch of suggestions."""
    try:
        return recurring_service.review_suggestions(
            db,
            user_id,
            data.suggestion_ids,
            data.action,
            now,
            denial_reason=data.denial_reason,
        )
    except InputError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/suggestions", response_model=ClearSuggestionsResponse)
def clear_suggestions(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Delete all pending suggestions."""
    return ClearSuggestionsResponse(deleted=recurring_service.clear_pending_suggestions(db, user_id))


@router.post("/cache/invalidate", response_model=CacheInvalidateResponse)
def invalidate_cache(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Called by bank sync after new transactions land."""
    return CacheInvalidateResponse(
        invalidated=analysis_cache.invalidate_on_transaction_update(db, user_id)
    )


@router.get("/transactions/{transaction_id}/analysis", response_model=TransactionAnalysisResponse)
def analyze_transaction(
    transaction_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Does this transaction look recurring?"""
    analysis = recurring_service.analyze_transaction(db, user_id, transaction_id)
    return TransactionAnalysisResponse(
        transaction_id=transaction_id,
        is_recurring=analysis.is_recurring,
        confidence=analysis.confidence,
        frequency=analysis.frequency,
        average_amount=round(analysis.average_amount, 2),
        occurrences=analysis.occurrences,
        reason=analysis.reason,
    )
