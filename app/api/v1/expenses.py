"""Expense endpoints"""
import json
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Header, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.config import get_settings
from app.core.exceptions import ConflictError
from app.database import get_db
from app.models.user import User
from app.schemas.expense import (ExpenseCreate, ExpenseListResponse,
                                 ExpenseResponse, ExpenseUpdate)
from app.services.cache_service import CacheService
from app.services.expense_service import ExpenseService

settings = get_settings()

IDEMPOTENCY_PENDING = "__pending__"

router = APIRouter(prefix="/budgets", tags=["Expenses"])


def _idempotency_cache_key(budget_id: UUID, key: str, user_id: UUID) -> str:
    return f"idempotency:expense:{budget_id}:{key}:{user_id}"


@router.post(
    "/{budget_id}/expenses",
    response_model=ExpenseResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_expense(
    budget_id: UUID,
    expense_data: ExpenseCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key")
):
    """
    Record an expense against a budget.

    The payer defaults to the caller. Without ``split_between`` the expense
    is shared equally by all budget participants.

    Supports idempotency via the `Idempotency-Key` header: repeating a
    request with the same key returns the original expense instead of
    recording it twice. A repeat that arrives while the first request is
    still running gets 409.

    Raises:
        400: If validation fails (blank title, non-positive amount, unknown
            category, payer or split users not on the trip)
        403: If the user is not on the trip
        404: If budget not found
        409: If the same Idempotency-Key is still being processed
    """
    if idempotency_key:
        cache_key = _idempotency_cache_key(budget_id, idempotency_key, current_user.id)
        cached_response = await CacheService.get(cache_key)

        if cached_response is None:
            # Reserve the key so a concurrent retry cannot record the expense twice
            reserved = await CacheService.set_if_absent(
                cache_key, IDEMPOTENCY_PENDING, ttl=settings.idempotency_lock_ttl
            )
            if reserved is False:
                cached_response = await CacheService.get(cache_key)

        if cached_response == IDEMPOTENCY_PENDING:
            raise ConflictError(
                "A request with this Idempotency-Key is still being processed"
            )
        if cached_response:
            return ExpenseResponse(**json.loads(cached_response))

    try:
        expense = await ExpenseService.add_expense(
            budget_id,
            expense_data,
            current_user.id,
            db
        )
    except Exception:
        if idempotency_key:
            await CacheService.delete(cache_key)
        raise
    response = ExpenseResponse.model_validate(expense)

    if idempotency_key:
        await CacheService.set(
            cache_key,
            response.model_dump_json(),
            ttl=settings.idempotency_ttl
        )

    return response


@router.get("/{budget_id}/expenses", response_model=ExpenseListResponse)
async def list_expenses(
    budget_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Get all expenses of a budget, most recent first.

    Raises:
        403: If the user is not on the trip
        404: If budget not found
    """
    expenses = await ExpenseService.list_expenses(budget_id, current_user.id, db)
    items = [ExpenseResponse.model_validate(expense) for expense in expenses]
    return ExpenseListResponse(items=items, total_items=len(items))


@router.put("/expenses/{expense_id}", response_model=ExpenseResponse)
async def update_expense(
    expense_id: UUID,
    expense_data: ExpenseUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Update an existing expense.

    Only the member who paid, or a trip admin, can update it. Only the
    fields sent are changed.

    Raises:
        400: If validation fails
        403: If user is neither payer nor admin
        404: If expense not found
    """
    expense = await ExpenseService.update_expense(
        expense_id,
        expense_data,
        current_user.id,
        db
    )
    return ExpenseResponse.model_validate(expense)


@router.delete("/expenses/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_expense(
    expense_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Delete an expense.

    Only the member who paid, or a trip admin, can delete it. Its amount is
    taken back out of its category's spent total.

    Raises:
        403: If user is neither payer nor admin
        404: If expense not found
    """
    await ExpenseService.delete_expense(expense_id, current_user.id, db)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
