"""
Database models package.
"""

from cadence.models.transaction import Transaction, IgnoreType
from cadence.models.recurring import (
    RecurringPattern,
    RecurringSuggestion,
    RecurringDismissal,
    Frequency,
    Confidence,
    PatternSource,
    SuggestionStatus,
)
from cadence.models.income import IncomeSource, IncomeType
from cadence.models.transaction_rule import TransactionRule
from cadence.models.analysis_cache import AnalysisCacheEntry

__all__ = [
    "Transaction",
    "IgnoreType",
    "RecurringPattern",
    "RecurringSuggestion",
    "RecurringDismissal",
    "Frequency",
    "Confidence",
    "PatternSource",
    "SuggestionStatus",
    "IncomeSource",
    "IncomeType",
    "TransactionRule",
    "AnalysisCacheEntry",
]
