"""Budget endpoints"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.database import get_db
from app.models.user import User
from app.schemas.budget import BudgetResponse, BudgetUpdate
from app.schemas.summary import SettlementSummary
from app.services.budget_service import BudgetService
from app.services.summary_service import SummaryService

router = APIRouter(prefix="/budgets", tags=["Budgets"])


@router.get("/trip/{trip_id}", response_model=BudgetResponse)
async def get_trip_budget(
    trip_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Get the budget of a trip.

    The caller must be a member of the trip. Participant totals are replayed
    from the budget's expenses.

    Raises:
        404: If the trip has no budget
        403: If the user is not on the trip
    """
    budget = await BudgetService.get_budget(trip_id, current_user.id, db)
    return BudgetService.build_response(budget)


@router.put("/{budget_id}", response_model=BudgetResponse)
async def update_budget(
    budget_id: UUID,
    budget_data: BudgetUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Replace total budget, per-person budget, category budgets, participants
    or split method.

    Only trip admins may update a budget. Spent amounts are not affected.

    Raises:
        400: If the patch is invalid (unknown category, duplicate or
            non-member participants)
        403: If the user is not a trip admin
        404: If budget not found
    """
    budget = await BudgetService.update_budget(
        budget_id, budget_data, current_user.id, db
    )
    return BudgetService.build_response(budget)


@router.get("/{budget_id}/summary", response_model=SettlementSummary)
async def get_budget_summary(
    budget_id: UUID,
    fresh: bool = Query(False, description="Bypass the summary cache"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Get budget totals and each participant's paid, owed and balance.

    A positive balance means the group owes that person money; a negative
    balance means the person owes the group.

    Raises:
        403: If the user is not on the trip
        404: If budget not found
        422: If the budget has no participants
    """
    return await SummaryService.get_summary(
        budget_id, current_user.id, db, use_cache=not fresh
    )
