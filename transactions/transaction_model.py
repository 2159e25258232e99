from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, List, Optional

from pydantic import Field, computed_field, field_validator

from schemas.common import ApiModel, as_utc, utcnow
from schemas.enums import StatsPeriod, TransactionCategory, TransactionType


def _clean_tags(value: Any) -> Any:
    # The add-transaction form posts tags either as a list or as "a, b, c"
    if value is None:
        return value
    if isinstance(value, str):
        value = value.split(",")
    if isinstance(value, list):
        return [str(tag).strip() for tag in value if str(tag).strip()]
    return value


class TransactionCreate(ApiModel):
    type: TransactionType
    amount: float = Field(ge=0, allow_inf_nan=False)
    category: TransactionCategory
    description: str = Field(default="", max_length=500)
    date: datetime = Field(default_factory=utcnow)
    tags: List[str] = Field(default_factory=list)

    @field_validator("description", mode="before")
    @classmethod
    def strip_description(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, v: Any) -> Any:
        return _clean_tags(v)

    @field_validator("date")
    @classmethod
    def normalize_date(cls, v: datetime) -> datetime:
        return as_utc(v)


class TransactionUpdate(ApiModel):
    """Partial update: only fields present in the body change. Explicit nulls are rejected."""

    type: TransactionType = None
    amount: float = Field(default=None, ge=0, allow_inf_nan=False)
    category: TransactionCategory = None
    description: str = Field(default=None, max_length=500)
    date: datetime = None
    tags: List[str] = None

    @field_validator("description", mode="before")
    @classmethod
    def strip_description(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, v: Any) -> Any:
        return _clean_tags(v)

    @field_validator("date")
    @classmethod
    def normalize_date(cls, v: datetime) -> datetime:
        return as_utc(v)


class TransactionOut(ApiModel):
    id: uuid.UUID
    type: TransactionType
    amount: float
    category: TransactionCategory
    description: str
    date: datetime
    tags: List[str]
    created_at: datetime

    @field_validator("date", "created_at")
    @classmethod
    def normalize_dates(cls, v: datetime) -> datetime:
        return as_utc(v)

    # Clients written against the Mongo backend key records by `_id`
    @computed_field(alias="_id")
    @property
    def record_id(self) -> uuid.UUID:
        return self.id


class TransactionEnvelope(ApiModel):
    transaction: TransactionOut


class Pagination(ApiModel):
    page: int
    limit: int
    total: int
    pages: int


class TransactionListOut(ApiModel):
    transactions: List[TransactionOut]
    pagination: Pagination


class TransactionFilters(ApiModel):
    category: Optional[TransactionCategory] = None
    type: Optional[TransactionType] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class SummaryOut(ApiModel):
    period: StatsPeriod
    total_income: float
    total_expenses: float
    net_income: float
    transaction_count: int


class CategoryTotal(ApiModel):
    category: str
    total: float
    percentage: float


class CategoryBreakdownOut(ApiModel):
    period: StatsPeriod
    categories: List[CategoryTotal]


class TrendPoint(ApiModel):
    period: str
    income: float
    expenses: float
    net: float

    @computed_field
    @property
    def month(self) -> str:
        """Chart label, same as `period`."""
        return self.period


class TrendsOut(ApiModel):
    range: StatsPeriod
    trends: List[TrendPoint]
