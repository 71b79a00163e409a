"""Partition transactions into per-merchant candidate groups."""

import enum
from collections import defaultdict
from typing import Callable, Dict, Iterable, List, Optional

from cadence.services.merchant import transaction_key
from cadence.services.taxonomy import is_income_transaction

# Loose/AI detection can take a pair; unsupervised detection needs three
MIN_OCCURRENCES_AI = 2
MIN_OCCURRENCES_BASIC = 3


class Direction(str, enum.Enum):
    income = "income"
    expense = "expense"
    any = "any"


def matches_direction(txn, direction: Direction) -> bool:
    if direction == Direction.any:
        return True
    income = is_income_transaction(txn)
    return income if direction == Direction.income else not income


def group_by_merchant(
    transactions: Iterable,
    key_fn: Callable = transaction_key,
    direction: Direction = Direction.any,
    min_occurrences: int = 1,
    exclude: Optional[Callable] = None,
) -> Dict[str, List]:
    """
    Group transactions by merchant key.

    Empty keys never form a group. Each group is sorted by date ascending and
    groups smaller than ``min_occurrences`` are dropped.
    """
    groups: Dict[str, List] = defaultdict(list)
    for txn in transactions:
        if not matches_direction(txn, direction):
            continue
        if exclude is not None and exclude(txn):
            continue
        key = key_fn(txn)
        if not key:
            continue
        groups[key].append(txn)

    return {
        key: sorted(txns, key=lambda t: t.date)
        for key, txns in groups.items()
        if len(txns) >= min_occurrences
    }
