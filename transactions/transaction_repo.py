from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import Select, and_, case, delete, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import Transaction
from schemas.enums import TransactionType
from transactions.transaction_model import TransactionFilters

logger = logging.getLogger(__name__)


class TransactionRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    def _filtered(self, stmt: Select, user_id: uuid.UUID, filters: Optional[TransactionFilters] = None) -> Select:
        stmt = stmt.where(Transaction.user_id == user_id)
        if filters is None:
            return stmt
        if filters.category:
            stmt = stmt.where(Transaction.category == filters.category)
        if filters.type:
            stmt = stmt.where(Transaction.type == filters.type)
        if filters.start_date:
            stmt = stmt.where(Transaction.date >= filters.start_date)
        if filters.end_date:
            stmt = stmt.where(Transaction.date <= filters.end_date)
        return stmt

    async def list_for_user(
        self,
        user_id: uuid.UUID,
        filters: Optional[TransactionFilters] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[list[Transaction], int]:
        stmt = self._filtered(select(Transaction), user_id, filters)
        stmt = stmt.order_by(desc(Transaction.date), desc(Transaction.created_at)).limit(limit).offset(offset)
        res = await self._session.execute(stmt)
        rows = list(res.scalars().all())

        count_stmt = self._filtered(select(func.count(Transaction.id)), user_id, filters)
        total = (await self._session.execute(count_stmt)).scalar_one()
        return rows, int(total)

    async def list_since(self, user_id: uuid.UUID, since: datetime) -> list[Transaction]:
        stmt = select(Transaction).where(Transaction.user_id == user_id, Transaction.date >= since)
        res = await self._session.execute(stmt.order_by(Transaction.date))
        return list(res.scalars().all())

    async def get_for_user(self, user_id: uuid.UUID, transaction_id: uuid.UUID) -> Optional[Transaction]:
        stmt = select(Transaction).where(Transaction.id == transaction_id, Transaction.user_id == user_id)
        res = await self._session.execute(stmt)
        return res.scalars().first()

    async def create(self, user_id: uuid.UUID, data: dict[str, Any]) -> Transaction:
        transaction = Transaction(user_id=user_id, **data)
        self._session.add(transaction)
        await self._session.commit()
        logger.info("Created transaction %s for user %s", transaction.id, user_id)
        return transaction

    async def update(self, user_id: uuid.UUID, transaction_id: uuid.UUID, changes: dict[str, Any]) -> Optional[Transaction]:
        transaction = await self.get_for_user(user_id, transaction_id)
        if transaction is None:
            return None
        for field, value in changes.items():
            setattr(transaction, field, value)
        await self._session.commit()
        logger.info("Updated transaction %s (%s)", transaction_id, ", ".join(sorted(changes)) or "no changes")
        return transaction

    async def delete(self, user_id: uuid.UUID, transaction_id: uuid.UUID) -> bool:
        stmt = delete(Transaction).where(Transaction.id == transaction_id, Transaction.user_id == user_id)
        res = await self._session.execute(stmt)
        await self._session.commit()
        deleted = res.rowcount > 0
        if deleted:
            logger.info("Deleted transaction %s", transaction_id)
        return deleted

    async def summarize(self, user_id: uuid.UUID, since: datetime) -> dict[str, float | int]:
        income = case((Transaction.type == TransactionType.income.value, Transaction.amount), else_=0)
        expense = case((Transaction.type == TransactionType.expense.value, Transaction.amount), else_=0)
        stmt = select(
            func.coalesce(func.sum(income), 0),
            func.coalesce(func.sum(expense), 0),
            func.count(Transaction.id),
        ).where(Transaction.user_id == user_id, Transaction.date >= since)
        total_income, total_expenses, count = (await self._session.execute(stmt)).one()
        return {
            "total_income": float(total_income or 0),
            "total_expenses": float(total_expenses or 0),
            "transaction_count": int(count or 0),
        }

    async def sum_expenses(self, user_id: uuid.UUID, category: str, start: datetime, end: datetime) -> float:
        stmt = select(func.coalesce(func.sum(Transaction.amount), 0)).where(
            and_(
                Transaction.user_id == user_id,
                Transaction.category == category,
                Transaction.type == TransactionType.expense.value,
                Transaction.date >= start,
                Transaction.date <= end,
            )
        )
        total = (await self._session.execute(stmt)).scalar_one()
        return float(total or 0)
