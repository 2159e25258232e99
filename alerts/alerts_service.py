from __future__ import annotations

from typing import Any, Dict, Iterable, List

import numpy as np
import pandas as pd

from db.models import Budget


class AlertsService:
    """Flags budgets whose spend has reached their alert threshold."""

    def budgets_to_dataframe(self, budgets: Iterable[Budget]) -> pd.DataFrame:
        rows = [
            {
                "budget_id": b.id,
                "name": b.name,
                "category": b.category,
                "spent": float(b.spent),
                "budget": float(b.amount),
                "enabled": bool(b.alerts_enabled),
                "threshold": float(b.alert_threshold),
            }
            for b in budgets
        ]
        columns = ["budget_id", "name", "category", "spent", "budget", "enabled", "threshold"]
        return pd.DataFrame(rows, columns=columns)

    def generate_alerts(self, df: pd.DataFrame) -> List[Dict[str, Any]]:
        alerts: List[Dict[str, Any]] = []
        if df.empty:
            return alerts

        s = df.copy()
        s["percentage_used"] = np.where(s["budget"] > 0, s["spent"] / s["budget"].where(s["budget"] > 0, 1.0) * 100.0, 0.0)
        triggered = s[s["enabled"].astype(bool) & (s["percentage_used"] >= s["threshold"])]
        for _, row in triggered.iterrows():
            alerts.append({
                "budget_id": row["budget_id"],
                "name": row["name"],
                "category": row["category"],
                "spent": float(row["spent"]),
                "budget": float(row["budget"]),
                # half-up rounding, matching what the dashboard displays
                "percentage_used": int(np.floor(row["percentage_used"] + 0.5)),
                "threshold": float(row["threshold"]),
            })
        return alerts

    def check_budgets(self, budgets: Iterable[Budget]) -> List[Dict[str, Any]]:
        return self.generate_alerts(self.budgets_to_dataframe(budgets))
