"""API endpoints for income sources."""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from cadence.dependencies import get_db, get_current_user_id, get_today
from cadence.errors import InputError
from cadence.schemas.income import (
    IncomeSourceCreate,
    IncomeSourceUpdate,
    IncomeSourceResponse,
    IncomeSourceWithHistory,
    IncomeListResponse,
    DetectedIncomeResponse,
    DetectedIncomeList,
)
from cadence.services import income_service

router = APIRouter(prefix="/income", tags=["income"])


@router.get("", response_model=IncomeListResponse)
def list_income(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    today: date = Depends(get_today),
):
    """Active income sources with monthly and yearly projections."""
    result = income_service.list_income_sources(db, user_id, today)
    sources = []
    for entry in result["sources"]:
        response = IncomeSourceWithHistory.model_validate(entry["source"])
        response.recent_transaction_ids = entry["recent_transaction_ids"]
        sources.append(response)
    return IncomeListResponse(sources=sources, stats=result["stats"])


@router.post("/detect", response_model=DetectedIncomeList)
def detect_income(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Scan deposits for income sources that are not registered yet."""
    detected = income_service.detect_income_sources(db, user_id)
    return DetectedIncomeList(
        detected=[DetectedIncomeResponse.model_validate(d) for d in detected],
        count=len(detected),
    )


@router.put("", response_model=IncomeSourceResponse)
def add_income_source(
    data: IncomeSourceCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    today: date = Depends(get_today),
):
    """Register an income source, or replace the one with the same key."""
    try:
        return income_service.upsert_income_source(
            db,
            user_id,
            name=data.name,
            income_type=data.income_type,
            amount=data.amount,
            frequency=data.frequency,
            today=today,
            employer_name=data.employer_name,
            pay_day=data.pay_day,
            original_name=data.original_name,
            notes=data.notes,
        )
    except InputError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/{source_id}", response_model=IncomeSourceResponse)
def update_income_source(
    source_id: str,
    data: IncomeSourceUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    try:
        return income_service.update_income_source(
            db, user_id, source_id, data.model_dump(exclude_unset=True)
        )
    except InputError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{source_id}")
def delete_income_source(
    source_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    income_service.delete_income_source(db, user_id, source_id)
    return {"success": True}
