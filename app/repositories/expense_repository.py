"""Expense data access"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.expense import Expense
from app.models.expense_split import ExpenseSplit


class ExpenseRepository:
    """Repository for Expense database operations"""

    @staticmethod
    async def create(db: AsyncSession, expense: Expense) -> Expense:
        """
        Create a new expense.

        Args:
            db: Database session
            expense: Expense object to create (splits attached)

        Returns:
            Created expense
        """
        db.add(expense)
        await db.flush()
        return expense

    @staticmethod
    async def get_by_id(db: AsyncSession, expense_id: UUID) -> Optional[Expense]:
        """
        Get expense by ID with its split entries.

        Args:
            db: Database session
            expense_id: Expense UUID

        Returns:
            Expense if found, None otherwise
        """
        result = await db.execute(
            select(Expense)
            .where(Expense.id == expense_id)
            .options(selectinload(Expense.splits))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def get_with_details(
        db: AsyncSession, expense_id: UUID
    ) -> Optional[Expense]:
        """
        Get expense with payer and split users eagerly loaded.

        Args:
            db: Database session
            expense_id: Expense UUID

        Returns:
            Expense with details if found, None otherwise
        """
        result = await db.execute(
            select(Expense)
            .where(Expense.id == expense_id)
            .options(
                selectinload(Expense.splits).selectinload(ExpenseSplit.user),
                selectinload(Expense.payer),
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def get_budget_expenses(db: AsyncSession, budget_id: UUID) -> List[Expense]:
        """
        Get all expenses of a budget, most recent first.

        Args:
            db: Database session
            budget_id: Budget UUID

        Returns:
            List of expenses
        """
        result = await db.execute(
            select(Expense)
            .where(Expense.budget_id == budget_id)
            .order_by(Expense.created_at.desc())
            .options(
                selectinload(Expense.splits).selectinload(ExpenseSplit.user),
                selectinload(Expense.payer),
            )
        )
        return list(result.scalars().all())

    @staticmethod
    async def delete(db: AsyncSession, expense: Expense) -> None:
        """
        Delete an expense; its split entries are cascade deleted.

        Args:
            db: Database session
            expense: Expense to delete
        """
        await db.delete(expense)
        await db.flush()
