from __future__ import annotations

import logging
import uuid
from typing import Any, List, Optional

from sqlalchemy import delete, desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import Budget
from transactions.transaction_repo import TransactionRepo

logger = logging.getLogger(__name__)


class BudgetRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._transactions = TransactionRepo(session)

    async def attach_spent(self, budget: Budget) -> Budget:
        """Recompute `spent` from the owner's expenses inside the budget window."""
        budget.spent = await self._transactions.sum_expenses(
            budget.user_id, budget.category, budget.start_date, budget.end_date
        )
        return budget

    async def list_for_user(self, user_id: uuid.UUID, alerts_enabled_only: bool = False) -> List[Budget]:
        stmt = select(Budget).where(Budget.user_id == user_id)
        if alerts_enabled_only:
            stmt = stmt.where(Budget.alerts_enabled.is_(True))
        res = await self._session.execute(stmt.order_by(desc(Budget.created_at)))
        budgets = list(res.scalars().all())
        for budget in budgets:
            await self.attach_spent(budget)
        return budgets

    async def get_for_user(self, user_id: uuid.UUID, budget_id: uuid.UUID) -> Optional[Budget]:
        stmt = select(Budget).where(Budget.id == budget_id, Budget.user_id == user_id)
        res = await self._session.execute(stmt)
        budget = res.scalars().first()
        if budget is not None:
            await self.attach_spent(budget)
        return budget

    async def create(self, user_id: uuid.UUID, data: dict[str, Any]) -> Budget:
        budget = Budget(user_id=user_id, **data)
        self._session.add(budget)
        await self._session.commit()
        logger.info("Created budget %s (%s) for user %s", budget.id, budget.category, user_id)
        return await self.attach_spent(budget)

    async def apply_changes(self, budget: Budget, changes: dict[str, Any]) -> Budget:
        for field, value in changes.items():
            setattr(budget, field, value)
        await self._session.commit()
        logger.info("Updated budget %s (%s)", budget.id, ", ".join(sorted(changes)) or "no changes")
        return await self.attach_spent(budget)

    async def delete(self, user_id: uuid.UUID, budget_id: uuid.UUID) -> bool:
        stmt = delete(Budget).where(Budget.id == budget_id, Budget.user_id == user_id)
        res = await self._session.execute(stmt)
        await self._session.commit()
        deleted = res.rowcount > 0
        if deleted:
            logger.info("Deleted budget %s", budget_id)
        return deleted
