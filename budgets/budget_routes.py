from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from alerts.alerts_service import AlertsService
from auth.auth import get_current_user_id
from budgets.budget_model import (
    BudgetAlertOut,
    BudgetAlertsOut,
    BudgetCreate,
    BudgetEnvelope,
    BudgetListOut,
    BudgetOut,
    BudgetUpdate,
)
from budgets.budget_periods import ensure_window, period_end
from budgets.budget_repo import BudgetRepo
from db.session import get_async_session
from exceptions import BudgetNotFoundError
from schemas.common import MessageOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/budgets", tags=["budgets"])


def get_budget_repo(session: AsyncSession = Depends(get_async_session)) -> BudgetRepo:
    return BudgetRepo(session)


def get_alerts_service() -> AlertsService:
    return AlertsService()


@router.get("", response_model=BudgetListOut)
async def list_budgets(
    user_id: uuid.UUID = Depends(get_current_user_id),
    repo: BudgetRepo = Depends(get_budget_repo),
) -> BudgetListOut:
    budgets = await repo.list_for_user(user_id)
    return BudgetListOut(budgets=[BudgetOut.from_budget(b) for b in budgets])


@router.get("/alerts/check", response_model=BudgetAlertsOut)
async def check_alerts(
    user_id: uuid.UUID = Depends(get_current_user_id),
    repo: BudgetRepo = Depends(get_budget_repo),
    service: AlertsService = Depends(get_alerts_service),
) -> BudgetAlertsOut:
    budgets = await repo.list_for_user(user_id, alerts_enabled_only=True)
    alerts = service.check_budgets(budgets)
    if alerts:
        logger.info("User %s has %d budget alert(s)", user_id, len(alerts))
    return BudgetAlertsOut(alerts=[BudgetAlertOut(**a) for a in alerts])


@router.get("/{budget_id}", response_model=BudgetEnvelope)
async def get_budget(
    budget_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    repo: BudgetRepo = Depends(get_budget_repo),
) -> BudgetEnvelope:
    budget = await repo.get_for_user(user_id, budget_id)
    if budget is None:
        logger.warning("Budget %s not found for user %s", budget_id, user_id)
        raise BudgetNotFoundError(budget_id)
    return BudgetEnvelope(budget=BudgetOut.from_budget(budget))


@router.post("", response_model=BudgetEnvelope, status_code=status.HTTP_201_CREATED)
async def create_budget(
    payload: BudgetCreate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    repo: BudgetRepo = Depends(get_budget_repo),
) -> BudgetEnvelope:
    end_date = payload.end_date or period_end(payload.start_date, payload.period)
    ensure_window(payload.start_date, end_date)
    budget = await repo.create(
        user_id,
        {
            "name": payload.name,
            "category": payload.category,
            "amount": payload.amount,
            "period": payload.period,
            "start_date": payload.start_date,
            "end_date": end_date,
            "alerts_enabled": payload.alerts.enabled,
            "alert_threshold": payload.alerts.threshold,
        },
    )
    return BudgetEnvelope(budget=BudgetOut.from_budget(budget))


@router.put("/{budget_id}", response_model=BudgetEnvelope)
async def update_budget(
    budget_id: uuid.UUID,
    payload: BudgetUpdate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    repo: BudgetRepo = Depends(get_budget_repo),
) -> BudgetEnvelope:
    budget = await repo.get_for_user(user_id, budget_id)
    if budget is None:
        raise BudgetNotFoundError(budget_id)
    changes = payload.to_columns()
    ensure_window(changes.get("start_date", budget.start_date), changes.get("end_date", budget.end_date))
    budget = await repo.apply_changes(budget, changes)
    return BudgetEnvelope(budget=BudgetOut.from_budget(budget))


@router.delete("/{budget_id}", response_model=MessageOut)
async def delete_budget(
    budget_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    repo: BudgetRepo = Depends(get_budget_repo),
) -> MessageOut:
    if not await repo.delete(user_id, budget_id):
        raise BudgetNotFoundError(budget_id)
    return MessageOut(message="Budget deleted successfully")
