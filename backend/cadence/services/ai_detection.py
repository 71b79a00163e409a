"""
AI-assisted recurring detection.

The model only sees a compact per-merchant summary, never raw transactions.
Any failure of the collaborator surfaces as ``UpstreamUnavailable`` so callers
can fall back to the basic detector.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from cadence.ai.client import get_ai_client
from cadence.ai.prompts import RECURRING_DETECTION_SYSTEM, RECURRING_DETECTION_USER
from cadence.errors import UpstreamUnavailable
from cadence.models.recurring import Frequency, Confidence
from cadence.services.grouping import group_by_merchant, MIN_OCCURRENCES_AI
from cadence.services.merchant import is_dismissed, normalize_merchant, transaction_key
from cadence.services.snapshots import TxnView
from cadence.services.taxonomy import is_income_transaction

logger = logging.getLogger(__name__)

SUMMARY_MAX_DATES = 5
_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")


@dataclass
class MerchantSummary:
    key: str
    merchant: str
    count: int
    avg_amount: float
    min_amount: float
    max_amount: float
    dates: List[date] = field(default_factory=list)
    category: Optional[str] = None
    is_income: bool = False

    def to_prompt_dict(self) -> Dict[str, Any]:
        return {
            "merchant": self.merchant,
            "key": self.key,
            "count": self.count,
            "avgAmount": f"{self.avg_amount:.2f}",
            "minAmount": f"{self.min_amount:.2f}",
            "maxAmount": f"{self.max_amount:.2f}",
            "dates": [d.isoformat() for d in self.dates],
            "category": self.category,
            "isIncome": self.is_income,
        }


@dataclass
class AISuggestion:
    """One validated recurring item proposed by the model."""
    name: str
    merchant_key: str
    display_name: str
    frequency: Frequency
    amount: float
    average_amount: float
    is_income: bool
    confidence: Confidence
    category: Optional[str] = None
    bill_type: Optional[str] = None


def build_merchant_summaries(
    transactions: Sequence[TxnView],
    dismissed_keys: Sequence[str] = (),
) -> Dict[str, MerchantSummary]:
    """
    Summaries for merchants with at least two transactions, keyed by merchant key.

    Dates are most-recent first, at most five per merchant.
    """
    groups = group_by_merchant(
        transactions,
        key_fn=transaction_key,
        min_occurrences=MIN_OCCURRENCES_AI,
        exclude=lambda t: t.ignore_type == "all",
    )

    summaries = {}
    for key, txns in groups.items():
        if is_dismissed(key, dismissed_keys):
            continue
        amounts = [float(t.amount) for t in txns]
        newest_first = list(reversed(txns))
        summaries[key] = MerchantSummary(
            key=key,
            merchant=newest_first[0].descriptor,
            count=len(txns),
            avg_amount=sum(amounts) / len(amounts),
            min_amount=min(amounts),
            max_amount=max(amounts),
            dates=[t.date for t in newest_first[:SUMMARY_MAX_DATES]],
            category=newest_first[0].category,
            is_income=is_income_transaction(newest_first[0]),
        )
    return summaries


def parse_ai_response(payload: Any) -> List[Dict[str, Any]]:
    """Accept a parsed list, a wrapping object, or raw text containing a JSON array."""
    if isinstance(payload, list):
        return [entry for entry in payload if isinstance(entry, dict)]
    if isinstance(payload, dict):
        for value in payload.values():
            if isinstance(value, list):
                return parse_ai_response(value)
        return []
    if isinstance(payload, str):
        match = _JSON_ARRAY.search(payload)
        if not match:
            return []
        try:
            return parse_ai_response(json.loads(match.group(0)))
        except json.JSONDecodeError as e:
            raise UpstreamUnavailable(f"Unparseable AI response: {e}")
    return []


def _to_float(value: Any) -> Optional[float]:
    try:
        return abs(float(value))
    except (TypeError, ValueError):
        return None


def validate_suggestion(entry: Dict[str, Any]) -> Optional[AISuggestion]:
    """Validated suggestion, or None for malformed or low-confidence entries."""
    name = entry.get("name")
    if not isinstance(name, str) or not name.strip():
        return None

    try:
        frequency = Frequency(entry.get("frequency"))
        confidence = Confidence(entry.get("confidence"))
    except ValueError:
        return None
    if confidence == Confidence.low:
        return None

    amount = _to_float(entry.get("amount"))
    if amount is None:
        return None
    average = _to_float(entry.get("averageAmount"))

    key = normalize_merchant(name)
    if not key:
        return None

    return AISuggestion(
        name=name.strip(),
        merchant_key=key,
        display_name=(entry.get("displayName") or name).strip(),
        frequency=frequency,
        amount=amount,
        average_amount=average if average is not None else amount,
        is_income=bool(entry.get("isIncome", False)),
        confidence=confidence,
        category=entry.get("category") or None,
        bill_type=entry.get("billType") or None,
    )


async def detect_with_ai(summaries: Dict[str, MerchantSummary]) -> List[AISuggestion]:
    """
    Ask the model which summarized merchants are true recurring bills.

    Raises:
        UpstreamUnavailable: on any client, transport or parse failure.
    """
    if not summaries:
        return []

    merchants = [s.to_prompt_dict() for s in summaries.values()]
    user_prompt = RECURRING_DETECTION_USER.format(
        merchant_count=len(merchants),
        merchants_json=json.dumps(merchants, indent=2),
    )

    client = get_ai_client()
    try:
        raw = await client.complete(
            system_prompt=RECURRING_DETECTION_SYSTEM,
            user_prompt=user_prompt,
            temperature=0.1,
            max_tokens=2048,
        )
    except Exception as e:
        status = getattr(e, "status_code", None)
        logger.error(f"AI recurring detection failed: {e}")
        raise UpstreamUnavailable(f"AI recurring detection failed: {e}", status_code=status) from e

    suggestions = []
    for entry in parse_ai_response(raw):
        suggestion = validate_suggestion(entry)
        if suggestion is None:
            logger.debug(f"Dropping AI entry: {entry!r}")
            continue
        suggestions.append(suggestion)

    logger.info(f"AI proposed {len(suggestions)} recurring items from {len(merchants)} merchants")
    return suggestions
