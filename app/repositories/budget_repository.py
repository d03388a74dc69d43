"""Budget data access"""

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.budget import Budget, BudgetParticipant
from app.models.expense import Expense


def _budget_options():
    return (
        selectinload(Budget.categories),
        selectinload(Budget.participants).selectinload(BudgetParticipant.user),
        selectinload(Budget.expenses).selectinload(Expense.splits),
    )


class BudgetRepository:
    """Repository for Budget database operations"""

    @staticmethod
    async def create(db: AsyncSession, budget: Budget) -> Budget:
        """
        Create a new budget together with its category rows and roster.

        Args:
            db: Database session
            budget: Budget object to create

        Returns:
            Created budget
        """
        db.add(budget)
        await db.flush()
        return budget

    @staticmethod
    async def get_by_id(db: AsyncSession, budget_id: UUID) -> Optional[Budget]:
        """
        Get budget with categories, roster and expenses loaded.

        Args:
            db: Database session
            budget_id: Budget UUID

        Returns:
            Budget if found, None otherwise
        """
        result = await db.execute(
            select(Budget)
            .where(Budget.id == budget_id)
            .options(*_budget_options())
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_trip(db: AsyncSession, trip_id: UUID) -> Optional[Budget]:
        """
        Get the budget belonging to a trip.

        Args:
            db: Database session
            trip_id: Trip UUID

        Returns:
            Budget if found, None otherwise
        """
        result = await db.execute(
            select(Budget)
            .where(Budget.trip_id == trip_id)
            .options(*_budget_options())
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def get_for_update(db: AsyncSession, budget_id: UUID) -> Optional[Budget]:
        """
        Get budget and lock its row until the transaction ends.

        Every writer of a budget's ledger goes through this lock, so
        concurrent expense writes to the same budget are applied one at a time.

        Args:
            db: Database session
            budget_id: Budget UUID

        Returns:
            Locked budget if found, None otherwise
        """
        result = await db.execute(
            select(Budget)
            .where(Budget.id == budget_id)
            .with_for_update()
            .options(
                selectinload(Budget.categories),
                selectinload(Budget.participants).selectinload(BudgetParticipant.user),
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def delete(db: AsyncSession, budget: Budget) -> None:
        """
        Delete a budget; categories, roster and expenses are cascade deleted.

        Args:
            db: Database session
            budget: Budget to delete
        """
        await db.delete(budget)
        await db.flush()
