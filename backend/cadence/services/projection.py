"""
Next-occurrence projection with calendar-correct month arithmetic.

Irregular patterns have no projection and are represented as ``None``. The
far-future sentinel only exists at the wire boundary for older clients.
"""

import logging
from datetime import date, timedelta
from typing import Optional

from dateutil.relativedelta import relativedelta

from cadence.models.recurring import Frequency

logger = logging.getLogger(__name__)

NO_PROJECTION_SENTINEL = date(9999, 12, 31)
MAX_ROLL_FORWARD_STEPS = 48

SEMI_MONTHLY_MID_DAY = 15

_PERIOD_DAYS = {
    Frequency.weekly: 7,
    Frequency.biweekly: 14,
}

_MONTH_STEPS = {
    Frequency.monthly: 1,
    Frequency.quarterly: 3,
    Frequency.yearly: 12,
}


def _snap_to_pay_day(value: date, pay_day: Optional[int]) -> date:
    if not pay_day:
        return value
    month_end = (value.replace(day=1) + relativedelta(months=1) - timedelta(days=1)).day
    return value.replace(day=min(max(pay_day, 1), month_end))


def _next_semi_monthly(after: date) -> date:
    """First 1st-or-15th strictly after ``after``."""
    if after.day < SEMI_MONTHLY_MID_DAY:
        return after.replace(day=SEMI_MONTHLY_MID_DAY)
    return after.replace(day=1) + relativedelta(months=1)


def _advance(anchor: date, frequency: Frequency, steps: int, pay_day: Optional[int] = None) -> date:
    """``anchor`` moved forward by ``steps`` whole periods, always counted from the anchor."""
    if frequency == Frequency.weekly:
        return anchor + timedelta(days=7 * steps)
    if frequency == Frequency.biweekly:
        return anchor + timedelta(days=14 * steps)
    months = _MONTH_STEPS[frequency] * steps
    result = anchor + relativedelta(months=months)
    if frequency == Frequency.monthly:
        result = _snap_to_pay_day(result, pay_day)
    return result


def next_occurrence(last: date, frequency: Frequency, pay_day: Optional[int] = None) -> Optional[date]:
    """
    Next expected date after ``last``.

    weekly/bi-weekly add 7/14 days; semi-monthly moves to the 15th when
    ``last`` is on or before it, otherwise to the 1st of next month; monthly
    adds a calendar month (clamped to month end, snapped to ``pay_day`` when
    given); quarterly/yearly add 3/12 months.
    Irregular has no projection.
    """
    frequency = Frequency(frequency)
    if frequency == Frequency.irregular:
        return None
    if frequency == Frequency.semimonthly:
        if last.day <= SEMI_MONTHLY_MID_DAY:
            return last.replace(day=SEMI_MONTHLY_MID_DAY)
        return last.replace(day=1) + relativedelta(months=1)
    return _advance(last, frequency, 1, pay_day)


def roll_forward(
    stored_next: Optional[date],
    last_seen: Optional[date],
    frequency: Frequency,
    today: date,
    pay_day: Optional[int] = None,
    latest_match: Optional[date] = None,
) -> Optional[date]:
    """
    Return a next expected date that is never before ``today``.

    A stored date that is not stale is returned unchanged. Otherwise the
    frequency increment is re-applied from the most recent known occurrence
    (``last_seen`` or ``latest_match``) until the result reaches ``today``.
    """
    frequency = Frequency(frequency)
    if frequency == Frequency.irregular:
        return None

    if stored_next is not None and stored_next >= today:
        return stored_next

    known = [d for d in (last_seen, latest_match) if d is not None]
    anchor = max(known) if known else stored_next
    if anchor is None:
        return today

    if frequency == Frequency.semimonthly:
        after = max(anchor, today - timedelta(days=1))
        return _next_semi_monthly(after)

    # Jump to just before today so stepping stays within a handful of iterations
    if frequency in _MONTH_STEPS:
        months_between = (today.year - anchor.year) * 12 + (today.month - anchor.month)
        start = max(1, months_between // _MONTH_STEPS[frequency] - 1)
    else:
        start = max(1, (today - anchor).days // _PERIOD_DAYS[frequency] - 1)

    for steps in range(start, start + MAX_ROLL_FORWARD_STEPS):
        candidate = _advance(anchor, frequency, steps, pay_day)
        if candidate >= today:
            return candidate

    logger.warning(
        "Roll-forward did not converge: anchor=%s frequency=%s today=%s",
        anchor, frequency.value, today,
    )
    return today


def to_wire_date(value: Optional[date]) -> str:
    """ISO date, or the far-future sentinel for "no projection"."""
    return (value or NO_PROJECTION_SENTINEL).isoformat()
