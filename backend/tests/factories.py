"""Snapshot builders for the pure-function tests."""

import uuid
from datetime import timedelta

from dateutil.relativedelta import relativedelta

from cadence.services.snapshots import TxnView


def txn_view(description, amount, txn_date, **kwargs):
    return TxnView(
        id=kwargs.pop("id", str(uuid.uuid4())),
        raw_description=description,
        amount=float(amount),
        date=txn_date,
        **kwargs
    )


def monthly_series(description, amount, start, count, **kwargs):
    """``count`` snapshots one calendar month apart starting at ``start``."""
    return [txn_view(description, amount, start + relativedelta(months=i), **kwargs) for i in range(count)]


def weekly_series(description, amount, start, count, **kwargs):
    return [txn_view(description, amount, start + timedelta(days=7 * i), **kwargs) for i in range(count)]
