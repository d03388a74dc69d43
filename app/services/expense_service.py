"""Expense business logic"""
import logging
from decimal import Decimal
from typing import Any, List, Optional, Set
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationError
from app.models.budget import Category
from app.models.expense import Expense
from app.models.expense_split import ExpenseSplit
from app.repositories.budget_repository import BudgetRepository
from app.repositories.expense_repository import ExpenseRepository
from app.repositories.trip_repository import TripRepository
from app.schemas.expense import ExpenseCreate, ExpenseUpdate, SplitEntryInput
from app.services.access_service import AccessService
from app.services.category_ledger import CategoryLedger, parse_category
from app.services.summary_service import SummaryService
from app.utils.decimal_utils import MAX_AMOUNT, round_decimal, to_decimal

logger = logging.getLogger(__name__)


class ExpenseService:
    """Service for expense operations"""

    @staticmethod
    def validate_title(title: Optional[str]) -> str:
        """
        Raises:
            ValidationError: If the title is missing or blank
        """
        if title is None or not title.strip():
            raise ValidationError("Expense title is required")
        return title.strip()

    @staticmethod
    def validate_amount(amount: Any) -> Decimal:
        """
        Round an expense amount to cents.

        Raises:
            ValidationError: If the amount is missing, not positive or too large
        """
        if amount is None:
            raise ValidationError("Expense amount is required")
        amount = to_decimal(amount)
        if not amount.is_finite() or amount <= 0:
            raise ValidationError(f"Expense amount must be positive, got {amount}")
        rounded = round_decimal(amount)
        if rounded <= 0:
            raise ValidationError(f"Expense amount must be positive, got {amount}")
        if rounded > MAX_AMOUNT:
            raise ValidationError(f"Expense amount cannot exceed {MAX_AMOUNT}")
        return rounded

    @staticmethod
    def validate_split_amounts(
        split_between: List[SplitEntryInput],
    ) -> List[SplitEntryInput]:
        """
        Round explicit split amounts to cents.

        Raises:
            ValidationError: If a split amount is too large
        """
        entries = []
        for entry in split_between:
            rounded = round_decimal(entry.amount)
            if rounded > MAX_AMOUNT:
                raise ValidationError(f"Split amount cannot exceed {MAX_AMOUNT}")
            entries.append(entry.model_copy(update={"amount": rounded}))
        return entries

    @staticmethod
    def validate_expense_fields(
        title: Optional[str], amount: Any, category: Any
    ) -> tuple[str, Decimal, Category]:
        """
        Validate the shape of an expense before anything is written.

        Args:
            title: Expense title
            amount: Expense amount
            category: Category name

        Returns:
            Tuple of (cleaned title, amount, category)

        Raises:
            ValidationError: If title is blank or amount is not positive
            InvalidCategory: If category is not one of the fixed categories
        """
        return (
            ExpenseService.validate_title(title),
            ExpenseService.validate_amount(amount),
            parse_category(category),
        )

    @staticmethod
    async def validate_trip_members(
        db: AsyncSession,
        trip_id: UUID,
        paid_by: Optional[UUID],
        split_between: Optional[List[SplitEntryInput]],
    ) -> None:
        """
        Validate that the payer and everyone in the split plan are on the trip.

        Raises:
            ValidationError: If any referenced user is not a trip member
        """
        roster = await TripRepository.get_trip_roster(db, trip_id)
        member_ids: Set[UUID] = {member_id for member_id, _ in roster}

        if paid_by is not None and paid_by not in member_ids:
            raise ValidationError(f"Payer {paid_by} is not a member of this trip")

        for entry in split_between or []:
            if entry.user_id not in member_ids:
                raise ValidationError(
                    f"User {entry.user_id} in split is not a member of this trip"
                )

    @staticmethod
    def _build_splits(split_between: List[SplitEntryInput]) -> List[ExpenseSplit]:
        return [
            ExpenseSplit(
                user_id=entry.user_id,
                amount=entry.amount,
                settled=entry.settled,
                position=position,
            )
            for position, entry in enumerate(split_between)
        ]

    @staticmethod
    async def add_expense(
        budget_id: UUID,
        expense_data: ExpenseCreate,
        user_id: UUID,
        db: AsyncSession
    ) -> Expense:
        """
        Record an expense and add it to its category's spent amount.

        Args:
            budget_id: Budget ID
            expense_data: Expense creation data
            user_id: ID of the trip member recording the expense
            db: Database session

        Returns:
            Created expense with payer and splits loaded

        Raises:
            NotFoundError: If budget not found
            AccessDeniedError: If user is not on the trip
            ValidationError / InvalidCategory: If validation fails
        """
        budget = await BudgetRepository.get_for_update(db, budget_id)
        if not budget:
            raise NotFoundError("Budget not found")

        await AccessService.require_member(db, budget.trip_id, user_id)

        title, amount, category = ExpenseService.validate_expense_fields(
            expense_data.title, expense_data.amount, expense_data.category
        )
        split_between = ExpenseService.validate_split_amounts(expense_data.split_between)
        paid_by = expense_data.paid_by or user_id
        await ExpenseService.validate_trip_members(db, budget.trip_id, paid_by, split_between)

        receipt = expense_data.receipt
        location = expense_data.location

        async with db.begin_nested():
            expense = Expense(
                budget_id=budget.id,
                trip_id=budget.trip_id,
                title=title,
                description=expense_data.description,
                amount=amount,
                currency=(expense_data.currency or budget.total_budget_currency).upper(),
                category=category,
                paid_by_user_id=paid_by,
                receipt_url=receipt.url if receipt else None,
                receipt_filename=receipt.filename if receipt else None,
                location_name=location.name if location else None,
                location_lat=location.lat if location else None,
                location_lng=location.lng if location else None,
                is_shared=expense_data.is_shared,
                splits=ExpenseService._build_splits(split_between),
            )
            if expense_data.expense_date is not None:
                expense.expense_date = expense_data.expense_date

            created_expense = await ExpenseRepository.create(db, expense)
            CategoryLedger.for_budget(budget).adjust_spent(category, amount)
            budget.touch()

        await db.commit()
        await SummaryService.invalidate(budget.id)
        logger.info(
            "Expense %s (%s %s) added to budget %s by %s",
            created_expense.id, amount, category.value, budget.id, user_id,
        )

        return await ExpenseRepository.get_with_details(db, created_expense.id)

    @staticmethod
    async def list_expenses(
        budget_id: UUID,
        user_id: UUID,
        db: AsyncSession
    ) -> List[Expense]:
        """
        Get all expenses of a budget, most recent first.

        Raises:
            NotFoundError: If budget not found
            AccessDeniedError: If user is not on the trip
        """
        budget = await BudgetRepository.get_by_id(db, budget_id)
        if not budget:
            raise NotFoundError("Budget not found")

        await AccessService.require_member(db, budget.trip_id, user_id)

        return await ExpenseRepository.get_budget_expenses(db, budget_id)

    @staticmethod
    async def _lock_expense(db: AsyncSession, expense_id: UUID):
        """
        Lock the owning budget, then re-read the expense under that lock.

        Returns:
            Tuple of (budget, expense)
        """
        expense = await ExpenseRepository.get_by_id(db, expense_id)
        if not expense:
            raise NotFoundError("Expense not found")

        budget = await BudgetRepository.get_for_update(db, expense.budget_id)
        if not budget:
            raise NotFoundError("Expense not found")

        # A concurrent delete may have won the lock first
        expense = await ExpenseRepository.get_by_id(db, expense_id)
        if not expense:
            raise NotFoundError("Expense not found")

        return budget, expense

    @staticmethod
    async def update_expense(
        expense_id: UUID,
        expense_data: ExpenseUpdate,
        user_id: UUID,
        db: AsyncSession
    ) -> Expense:
        """
        Update an expense (payer or trip admin only).

        When amount or category change, the old amount is taken out of the old
        category before the new amount is added to the new one.

        Args:
            expense_id: Expense ID
            expense_data: Fields to change
            user_id: User ID making the update
            db: Database session

        Returns:
            Updated expense

        Raises:
            NotFoundError: If expense not found
            AccessDeniedError: If user is neither payer nor admin
            ValidationError / InvalidCategory: If validation fails
        """
        budget, expense = await ExpenseService._lock_expense(db, expense_id)

        await AccessService.require_payer_or_admin(
            db, expense.trip_id, expense.paid_by_user_id, user_id
        )

        changes = expense_data.model_dump(exclude_unset=True)

        title = ExpenseService.validate_title(changes["title"]) if "title" in changes else expense.title
        amount = ExpenseService.validate_amount(changes["amount"]) if "amount" in changes else to_decimal(expense.amount)
        category = parse_category(changes["category"]) if "category" in changes else parse_category(expense.category)

        if "paid_by" in changes and expense_data.paid_by is None:
            raise ValidationError("Expense payer is required")
        if "split_between" in changes and expense_data.split_between is None:
            raise ValidationError("split_between must be a list")
        split_between = None
        if "split_between" in changes:
            split_between = ExpenseService.validate_split_amounts(expense_data.split_between)
        if "paid_by" in changes or "split_between" in changes:
            await ExpenseService.validate_trip_members(
                db, expense.trip_id, expense_data.paid_by, split_between
            )

        old_amount = to_decimal(expense.amount)
        old_category = parse_category(expense.category)

        async with db.begin_nested():
            expense.title = title
            expense.amount = amount
            expense.category = category

            if "description" in changes:
                expense.description = expense_data.description
            if "currency" in changes and expense_data.currency:
                expense.currency = expense_data.currency.upper()
            if "paid_by" in changes:
                expense.paid_by_user_id = expense_data.paid_by
            if "split_between" in changes:
                expense.splits = ExpenseService._build_splits(split_between)
            if "receipt" in changes:
                receipt = expense_data.receipt
                expense.receipt_url = receipt.url if receipt else None
                expense.receipt_filename = receipt.filename if receipt else None
            if "expense_date" in changes and expense_data.expense_date is not None:
                expense.expense_date = expense_data.expense_date
            if "location" in changes:
                location = expense_data.location
                expense.location_name = location.name if location else None
                expense.location_lat = location.lat if location else None
                expense.location_lng = location.lng if location else None
            if "is_shared" in changes and expense_data.is_shared is not None:
                expense.is_shared = expense_data.is_shared

            if old_amount != amount or old_category != category:
                ledger = CategoryLedger.for_budget(budget)
                ledger.adjust_spent(old_category, -old_amount)
                ledger.adjust_spent(category, amount)

            budget.touch()
            await db.flush()

        await db.commit()
        await SummaryService.invalidate(budget.id)
        logger.info("Expense %s updated by %s: %s", expense_id, user_id, sorted(changes))

        return await ExpenseRepository.get_with_details(db, expense_id)

    @staticmethod
    async def delete_expense(
        expense_id: UUID,
        user_id: UUID,
        db: AsyncSession
    ) -> bool:
        """
        Delete an expense (payer or trip admin only) and take its amount back
        out of its category.

        Args:
            expense_id: Expense ID
            user_id: User ID making the deletion
            db: Database session

        Returns:
            True if deleted

        Raises:
            NotFoundError: If expense not found
            AccessDeniedError: If user is neither payer nor admin
        """
        budget, expense = await ExpenseService._lock_expense(db, expense_id)

        await AccessService.require_payer_or_admin(
            db, expense.trip_id, expense.paid_by_user_id, user_id
        )

        async with db.begin_nested():
            CategoryLedger.for_budget(budget).adjust_spent(
                expense.category, -to_decimal(expense.amount)
            )
            await ExpenseRepository.delete(db, expense)
            budget.touch()

        await db.commit()
        await SummaryService.invalidate(budget.id)
        logger.info("Expense %s deleted by %s", expense_id, user_id)

        return True
