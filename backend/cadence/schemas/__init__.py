"""
Pydantic schemas package.
"""

from cadence.schemas.recurring import (
    RecurringItemResponse,
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
    TransactionAnalysisResponse,
)
from cadence.schemas.income import (
    IncomeSourceCreate,
    IncomeSourceUpdate,
    IncomeSourceResponse,
    IncomeSourceWithHistory,
    IncomeListResponse,
    DetectedIncomeResponse,
    DetectedIncomeList,
)

__all__ = [
    "RecurringItemResponse",
    "RecurringOverviewResponse",
    "AnalyzeRequest",
    "AnalyzeResponse",
    "RecurringPatternCreate",
    "RecurringPatternUpdate",
    "RecurringPatternResponse",
    "RecurringDismissRequest",
    "RecurringDismissResponse",
    "SuggestionResponse",
    "SuggestionListResponse",
    "ReviewRequest",
    "ReviewResponse",
    "TransactionAnalysisResponse",
    "IncomeSourceCreate",
    "IncomeSourceUpdate",
    "IncomeSourceResponse",
    "IncomeSourceWithHistory",
    "IncomeListResponse",
    "DetectedIncomeResponse",
    "DetectedIncomeList",
]
