from __future__ import annotations

from datetime import datetime

import pandas as pd

from exceptions import InvalidBudgetWindowError
from schemas.common import as_utc
from schemas.enums import BudgetPeriod

_PERIOD_OFFSETS = {
    BudgetPeriod.weekly.value: pd.DateOffset(days=7),
    BudgetPeriod.monthly.value: pd.DateOffset(months=1),
    BudgetPeriod.yearly.value: pd.DateOffset(years=1),
}


def period_end(start: datetime, period: str) -> datetime:
    """End of a budget window that opens at `start`; calendar-aware for months and years."""
    offset = _PERIOD_OFFSETS.get(getattr(period, "value", period), _PERIOD_OFFSETS[BudgetPeriod.monthly.value])
    return (pd.Timestamp(as_utc(start)) + offset).to_pydatetime()


def ensure_window(start: datetime, end: datetime) -> None:
    if as_utc(end) < as_utc(start):
        raise InvalidBudgetWindowError()
