from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, List, Optional

from pydantic import Field, computed_field, field_validator

from db.models import Budget
from schemas.common import ApiModel, as_utc, utcnow
from schemas.enums import BudgetCategory, BudgetPeriod


def _strip(v: Any) -> Any:
    return v.strip() if isinstance(v, str) else v


class BudgetAlerts(ApiModel):
    enabled: bool = True
    threshold: float = Field(default=80.0, ge=0, le=100, allow_inf_nan=False)  # percentage


class BudgetAlertsUpdate(ApiModel):
    enabled: bool = None
    threshold: float = Field(default=None, ge=0, le=100, allow_inf_nan=False)


class BudgetCreate(ApiModel):
    name: str = Field(min_length=1, max_length=200)
    category: BudgetCategory
    amount: float = Field(ge=0, allow_inf_nan=False)
    period: BudgetPeriod = BudgetPeriod.monthly.value
    start_date: datetime = Field(default_factory=utcnow)
    # Derived from start_date + period when omitted
    end_date: Optional[datetime] = None
    alerts: BudgetAlerts = Field(default_factory=BudgetAlerts)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> Any:
        return _strip(v)

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_dates(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)


class BudgetUpdate(ApiModel):
    """Partial update; `alerts` merges field by field."""

    name: str = Field(default=None, min_length=1, max_length=200)
    category: BudgetCategory = None
    amount: float = Field(default=None, ge=0, allow_inf_nan=False)
    period: BudgetPeriod = None
    start_date: datetime = None
    end_date: datetime = None
    alerts: BudgetAlertsUpdate = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> Any:
        return _strip(v)

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_dates(cls, v: datetime) -> datetime:
        return as_utc(v)

    def to_columns(self) -> dict[str, Any]:
        """Flatten the set fields onto Budget column names."""
        changes = self.model_dump(exclude_unset=True)
        alerts = changes.pop("alerts", None) or {}
        if "enabled" in alerts:
            changes["alerts_enabled"] = alerts["enabled"]
        if "threshold" in alerts:
            changes["alert_threshold"] = alerts["threshold"]
        return changes


class BudgetOut(ApiModel):
    id: uuid.UUID
    name: str
    category: BudgetCategory
    amount: float
    spent: float
    remaining: float
    percentage_used: float
    period: BudgetPeriod
    start_date: datetime
    end_date: datetime
    alerts: BudgetAlerts
    created_at: datetime

    @field_validator("start_date", "end_date", "created_at")
    @classmethod
    def normalize_dates(cls, v: datetime) -> datetime:
        return as_utc(v)

    @computed_field(alias="_id")
    @property
    def record_id(self) -> uuid.UUID:
        return self.id

    @classmethod
    def from_budget(cls, budget: Budget) -> "BudgetOut":
        return cls(
            id=budget.id,
            name=budget.name,
            category=budget.category,
            amount=budget.amount,
            spent=budget.spent,
            remaining=budget.remaining,
            percentage_used=budget.percentage_used,
            period=budget.period,
            start_date=budget.start_date,
            end_date=budget.end_date,
            alerts=BudgetAlerts(enabled=budget.alerts_enabled, threshold=budget.alert_threshold),
            created_at=budget.created_at,
        )


class BudgetEnvelope(ApiModel):
    budget: BudgetOut


class BudgetListOut(ApiModel):
    budgets: List[BudgetOut]


class BudgetAlertOut(ApiModel):
    budget_id: uuid.UUID
    name: str
    category: str
    spent: float
    budget: float
    percentage_used: int
    threshold: float


class BudgetAlertsOut(ApiModel):
    alerts: List[BudgetAlertOut]
