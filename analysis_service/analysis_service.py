from __future__ import annotations

from datetime import datetime, timedelta
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from schemas.common import as_utc, utcnow
from schemas.enums import StatsPeriod, TransactionType


def period_start(period: StatsPeriod, now: Optional[datetime] = None) -> datetime:
  """
  Start of the reporting window ending at `now` (UTC).
  week: rolling 7 days; month: first day of the current month; year: January 1st.
  """
  now = as_utc(now) or utcnow()
  if period is StatsPeriod.week:
    return now - timedelta(days=7)
  if period is StatsPeriod.year:
    return now.replace(month=1, day=1, hour=0, minute=0, second=0, microsecond=0)
  return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


class AnalysisService():

  COLUMNS = ["date", "type", "amount", "category"]

  def __init__(self) -> None:
    pass

  def transactions_to_dataframe(self, transactions: Iterable[Any]) -> pd.DataFrame:
    """
    Build a strictly typed frame from ORM rows or dicts.
    Dates are normalized to naive UTC so buckets line up across backends.
    """
    records: List[Dict[str, Any]] = []
    for t in transactions:
      if isinstance(t, dict):
        records.append({c: t.get(c) for c in self.COLUMNS})
      else:
        records.append({c: getattr(t, c) for c in self.COLUMNS})

    for r in records:
      r["date"] = as_utc(r["date"])

    df = pd.DataFrame(records, columns=self.COLUMNS)
    if df.empty:
      return df.astype({
        "date": "datetime64[ns]", "type": "string", "amount": "float64", "category": "string"
      })

    df["date"] = pd.to_datetime(df["date"], utc=True).dt.tz_localize(None)
    df["amount"] = pd.to_numeric(df["amount"], errors="coerce").fillna(0.0)
    return df.astype({
      "date": "datetime64[ns]", "type": "string", "amount": "float64", "category": "string"
    })

  def calculate_trends(self, df: pd.DataFrame, period: StatsPeriod, now: Optional[datetime] = None) -> pd.DataFrame:
    """
    Income, expenses and net per bucket from the period start up to `now`.
    Daily buckets for week/month, monthly for year. Empty buckets are zero.
    """
    now = as_utc(now) or utcnow()
    start = pd.Timestamp(period_start(period, now)).tz_localize(None)
    end = pd.Timestamp(now).tz_localize(None)
    monthly = period is StatsPeriod.year

    if monthly:
      index = pd.date_range(start=start.to_period("M").to_timestamp(), end=end.to_period("M").to_timestamp(), freq="MS")
    else:
      index = pd.date_range(start=start.normalize(), end=end.normalize(), freq="D")

    s = df[(df["date"] >= start) & (df["date"] <= end)].copy()
    if monthly:
      s["bucket"] = s["date"].dt.to_period("M").dt.to_timestamp()
    else:
      s["bucket"] = s["date"].dt.normalize()
    s["income"] = s["amount"].where(s["type"] == TransactionType.income.value, 0.0)
    s["expenses"] = s["amount"].where(s["type"] == TransactionType.expense.value, 0.0)

    agg = s.groupby("bucket")[["income", "expenses"]].sum().reindex(index, fill_value=0.0)
    agg["net"] = agg["income"] - agg["expenses"]
    agg.index = agg.index.strftime("%Y-%m" if monthly else "%Y-%m-%d")
    agg = agg.rename_axis("period").reset_index()
    return agg.astype({"period": "string", "income": "float64", "expenses": "float64", "net": "float64"})

  def categorical_spend(self, df: pd.DataFrame, since: Optional[datetime] = None) -> pd.DataFrame:
    """Expense totals per category, largest first, with share of total spend."""
    s = df[df["type"] == TransactionType.expense.value]
    if since is not None:
      s = s[s["date"] >= pd.Timestamp(as_utc(since)).tz_localize(None)]
    if s.empty:
      return pd.DataFrame(columns=["category", "total", "percentage"]).astype({
        "category": "string", "total": "float64", "percentage": "float64"
      })
    grp = s.groupby("category")["amount"].sum().reset_index().rename(columns={"amount": "total"})
    grand_total = grp["total"].sum()
    grp["percentage"] = (grp["total"] / grand_total * 100.0).fillna(0.0) if grand_total else 0.0
    grp = grp.sort_values(["total", "category"], ascending=[False, True], kind="mergesort").reset_index(drop=True)
    return grp.astype({"category": "string", "total": "float64", "percentage": "float64"})


@lru_cache(maxsize=1)
def get_analysis_service() -> "AnalysisService":
  return AnalysisService()
