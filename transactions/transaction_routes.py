from __future__ import annotations

import logging
import math
import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from analysis_service.analysis_service import AnalysisService, get_analysis_service, period_start
from auth.auth import get_current_user_id
from db.session import get_async_session
from exceptions import TransactionNotFoundError
from schemas.common import MessageOut, as_utc, utcnow
from schemas.enums import StatsPeriod, TransactionCategory, TransactionType
from settings.config import settings
from transactions.transaction_model import (
    CategoryBreakdownOut,
    CategoryTotal,
    Pagination,
    SummaryOut,
    TransactionCreate,
    TransactionEnvelope,
    TransactionFilters,
    TransactionListOut,
    TransactionOut,
    TransactionUpdate,
    TrendPoint,
    TrendsOut,
)
from transactions.transaction_repo import TransactionRepo

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/transactions", tags=["transactions"])


def get_transaction_repo(session: AsyncSession = Depends(get_async_session)) -> TransactionRepo:
    return TransactionRepo(session)


@router.get("", response_model=TransactionListOut)
async def list_transactions(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_LIMIT, ge=1, le=settings.MAX_PAGE_LIMIT),
    category: Optional[TransactionCategory] = None,
    type: Optional[TransactionType] = None,
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    user_id: uuid.UUID = Depends(get_current_user_id),
    repo: TransactionRepo = Depends(get_transaction_repo),
) -> TransactionListOut:
    filters = TransactionFilters(
        category=category,
        type=type,
        start_date=as_utc(start_date),
        end_date=as_utc(end_date),
    )
    rows, total = await repo.list_for_user(user_id, filters, limit=limit, offset=(page - 1) * limit)
    return TransactionListOut(
        transactions=[TransactionOut.model_validate(t) for t in rows],
        pagination=Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit)),
    )


@router.get("/stats/summary", response_model=SummaryOut)
async def transaction_summary(
    period: Optional[str] = Query(None),
    user_id: uuid.UUID = Depends(get_current_user_id),
    repo: TransactionRepo = Depends(get_transaction_repo),
) -> SummaryOut:
    stats_period = StatsPeriod.parse(period)
    totals = await repo.summarize(user_id, period_start(stats_period, utcnow()))
    return SummaryOut(
        period=stats_period,
        total_income=totals["total_income"],
        total_expenses=totals["total_expenses"],
        net_income=totals["total_income"] - totals["total_expenses"],
        transaction_count=totals["transaction_count"],
    )


@router.get("/stats/categories", response_model=CategoryBreakdownOut)
async def category_breakdown(
    period: Optional[str] = Query(None),
    user_id: uuid.UUID = Depends(get_current_user_id),
    repo: TransactionRepo = Depends(get_transaction_repo),
    service: AnalysisService = Depends(get_analysis_service),
) -> CategoryBreakdownOut:
    stats_period = StatsPeriod.parse(period)
    since = period_start(stats_period, utcnow())
    df = service.transactions_to_dataframe(await repo.list_since(user_id, since))
    spend = service.categorical_spend(df)
    return CategoryBreakdownOut(
        period=stats_period,
        categories=[CategoryTotal(**row) for row in spend.to_dict(orient="records")],
    )


@router.get("/trends", response_model=TrendsOut)
async def transaction_trends(
    range_: Optional[str] = Query(None, alias="range"),
    user_id: uuid.UUID = Depends(get_current_user_id),
    repo: TransactionRepo = Depends(get_transaction_repo),
    service: AnalysisService = Depends(get_analysis_service),
) -> TrendsOut:
    stats_period = StatsPeriod.parse(range_)
    now = utcnow()
    df = service.transactions_to_dataframe(await repo.list_since(user_id, period_start(stats_period, now)))
    trends = service.calculate_trends(df, stats_period, now)
    return TrendsOut(
        range=stats_period,
        trends=[TrendPoint(**row) for row in trends.to_dict(orient="records")],
    )


@router.get("/{transaction_id}", response_model=TransactionEnvelope)
async def get_transaction(
    transaction_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    repo: TransactionRepo = Depends(get_transaction_repo),
) -> TransactionEnvelope:
    transaction = await repo.get_for_user(user_id, transaction_id)
    if transaction is None:
        logger.warning("Transaction %s not found for user %s", transaction_id, user_id)
        raise TransactionNotFoundError(transaction_id)
    return TransactionEnvelope(transaction=TransactionOut.model_validate(transaction))


@router.post("", response_model=TransactionEnvelope, status_code=status.HTTP_201_CREATED)
async def create_transaction(
    payload: TransactionCreate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    repo: TransactionRepo = Depends(get_transaction_repo),
) -> TransactionEnvelope:
    transaction = await repo.create(user_id, payload.model_dump(mode="python"))
    return TransactionEnvelope(transaction=TransactionOut.model_validate(transaction))


@router.put("/{transaction_id}", response_model=TransactionEnvelope)
async def update_transaction(
    transaction_id: uuid.UUID,
    payload: TransactionUpdate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    repo: TransactionRepo = Depends(get_transaction_repo),
) -> TransactionEnvelope:
    transaction = await repo.update(user_id, transaction_id, payload.model_dump(exclude_unset=True))
    if transaction is None:
        raise TransactionNotFoundError(transaction_id)
    return TransactionEnvelope(transaction=TransactionOut.model_validate(transaction))


@router.delete("/{transaction_id}", response_model=MessageOut)
async def delete_transaction(
    transaction_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    repo: TransactionRepo = Depends(get_transaction_repo),
) -> MessageOut:
    if not await repo.delete(user_id, transaction_id):
        raise TransactionNotFoundError(transaction_id)
    return MessageOut(message="Transaction deleted successfully")
