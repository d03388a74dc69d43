"""Budget aggregate business logic"""
import logging
from decimal import Decimal
from typing import Dict, List
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.budget import Budget, BudgetParticipant, SplitMethod
from app.repositories.budget_repository import BudgetRepository
from app.repositories.trip_repository import TripRepository
from app.schemas.budget import (BudgetResponse, BudgetUpdate, CategoryAmounts,
                                ParticipantInput, ParticipantResponse)
from app.schemas.common import Money
from app.schemas.user import UserSummary
from app.services.access_service import AccessService
from app.services.category_ledger import (CategoryLedger, new_category_rows,
                                          parse_category)
from app.services.summary_service import SummaryService, summarize
from app.utils.decimal_utils import MAX_AMOUNT, ZERO, round_decimal, to_decimal

settings = get_settings()
logger = logging.getLogger(__name__)


class BudgetService:
    """Service for budget operations"""

    @staticmethod
    async def create_for_trip(
        db: AsyncSession, trip_id: UUID, creator_id: UUID
    ) -> Budget:
        """
        Create the budget of a newly created trip.

        The budget starts with zero totals, every category at zero and the
        trip creator as the only participant.

        Args:
            db: Database session
            trip_id: Trip ID
            creator_id: User who created the trip

        Returns:
            Created budget

        Raises:
            NotFoundError: If the trip does not exist
            ConflictError: If the trip already has a budget
        """
        trip = await TripRepository.get_by_id(db, trip_id)
        if not trip:
            raise NotFoundError("Trip not found")

        if await BudgetRepository.get_by_trip(db, trip_id):
            raise ConflictError("Trip already has a budget")

        budget = Budget(
            trip_id=trip_id,
            total_budget_amount=ZERO,
            total_budget_currency=settings.default_currency,
            split_method=SplitMethod.EQUAL,
            version=0,
            categories=new_category_rows(),
            participants=[
                BudgetParticipant(user_id=creator_id, share=Decimal("1"), position=0)
            ],
        )
        created = await BudgetRepository.create(db, budget)
        logger.info("Created budget %s for trip %s", created.id, trip_id)
        return created

    @staticmethod
    async def delete_for_trip(db: AsyncSession, trip_id: UUID) -> None:
        """
        Destroy a trip's budget and all of its expenses.

        Args:
            db: Database session
            trip_id: Trip ID

        Raises:
            NotFoundError: If the trip has no budget
        """
        budget = await BudgetRepository.get_by_trip(db, trip_id)
        if not budget:
            raise NotFoundError("Budget not found")

        budget_id = budget.id
        await BudgetRepository.delete(db, budget)
        await SummaryService.invalidate(budget_id)
        logger.info("Deleted budget %s of trip %s", budget_id, trip_id)

    @staticmethod
    async def get_budget(trip_id: UUID, user_id: UUID, db: AsyncSession) -> Budget:
        """
        Get the budget of a trip.

        Args:
            trip_id: Trip ID
            user_id: User requesting the budget
            db: Database session

        Returns:
            Budget with categories, roster and expenses loaded

        Raises:
            NotFoundError: If the trip has no budget
            AccessDeniedError: If the user is not on the trip
        """
        budget = await BudgetRepository.get_by_trip(db, trip_id)
        if not budget:
            raise NotFoundError("Budget not found")

        await AccessService.require_member(db, trip_id, user_id)
        return budget

    @staticmethod
    async def validate_participants(
        db: AsyncSession, trip_id: UUID, participants: List[ParticipantInput]
    ) -> None:
        """
        Validate a replacement roster.

        Raises:
            ValidationError: On duplicate users or users not on the trip
        """
        seen = set()
        for participant in participants:
            if participant.user_id in seen:
                raise ValidationError(
                    f"User {participant.user_id} is listed more than once"
                )
            seen.add(participant.user_id)

        roster = await TripRepository.get_trip_roster(db, trip_id)
        member_ids = {member_id for member_id, _ in roster}
        for participant in participants:
            if participant.user_id not in member_ids:
                raise ValidationError(
                    f"User {participant.user_id} is not a member of this trip"
                )

    @staticmethod
    def _replace_participants(
        budget: Budget, participants: List[ParticipantInput]
    ) -> None:
        # Rows of users who stay are updated in place so the
        # (budget_id, user_id) unique constraint never sees two rows at once.
        existing = {row.user_id: row for row in budget.participants}
        rows = []
        for position, participant in enumerate(participants):
            row = existing.get(participant.user_id)
            if row is None:
                row = BudgetParticipant(user_id=participant.user_id)
            row.share = participant.share
            row.position = position
            rows.append(row)
        budget.participants = rows

    @staticmethod
    async def update_budget(
        budget_id: UUID,
        budget_data: BudgetUpdate,
        user_id: UUID,
        db: AsyncSession
    ) -> Budget:
        """
        Replace budget settings (trip admins only).

        Spent amounts are never touched here.

        Args:
            budget_id: Budget ID
            budget_data: Fields to replace
            user_id: User making the update
            db: Database session

        Returns:
            Updated budget

        Raises:
            NotFoundError: If budget not found
            AccessDeniedError: If user is not a trip admin
            ValidationError / InvalidCategory: If the patch is invalid
        """
        budget = await BudgetRepository.get_for_update(db, budget_id)
        if not budget:
            raise NotFoundError("Budget not found")

        await AccessService.require_admin(db, budget.trip_id, user_id)

        changes = budget_data.model_dump(exclude_unset=True)

        budgeted: Dict = {}
        if budget_data.categories is not None:
            for name, amount in budget_data.categories.items():
                amount = to_decimal(amount)
                if amount < 0:
                    raise ValidationError(
                        f"Budgeted amount for {name} cannot be negative"
                    )
                if amount > MAX_AMOUNT:
                    raise ValidationError(
                        f"Budgeted amount for {name} cannot exceed {MAX_AMOUNT}"
                    )
                budgeted[parse_category(name)] = round_decimal(amount)

        if "total_budget" in changes and budget_data.total_budget is None:
            raise ValidationError("Total budget cannot be removed")

        if budget_data.participants is not None:
            await BudgetService.validate_participants(
                db, budget.trip_id, budget_data.participants
            )

        async with db.begin_nested():
            if budget_data.total_budget is not None:
                budget.total_budget_amount = budget_data.total_budget.amount
                budget.total_budget_currency = budget_data.total_budget.currency

            if "budget_per_person" in changes:
                per_person = budget_data.budget_per_person
                budget.budget_per_person_amount = per_person.amount if per_person else None
                budget.budget_per_person_currency = per_person.currency if per_person else None

            if budgeted:
                ledger = CategoryLedger.for_budget(budget)
                for category, amount in budgeted.items():
                    ledger.set_budgeted(category, amount)

            if budget_data.participants is not None:
                BudgetService._replace_participants(budget, budget_data.participants)

            if budget_data.split_method is not None:
                budget.split_method = budget_data.split_method

            budget.touch()

        await db.commit()
        await SummaryService.invalidate(budget_id)
        logger.info("Budget %s updated by %s: %s", budget_id, user_id, sorted(changes))

        return await BudgetRepository.get_by_id(db, budget_id)

    @staticmethod
    def build_response(budget: Budget) -> BudgetResponse:
        """
        Render a budget, with participant totals replayed from its expenses.

        Args:
            budget: Budget with categories, roster and expenses loaded

        Returns:
            BudgetResponse
        """
        totals = {}
        if budget.participants:
            summary = summarize(budget, budget.expenses)
            totals = {person.user_id: person for person in summary.person_breakdown}

        participants = []
        for participant in budget.participants:
            person = totals.get(participant.user_id)
            participants.append(
                ParticipantResponse(
                    user=UserSummary.model_validate(participant.user),
                    share=participant.share,
                    total_owed=person.total_owed if person else ZERO,
                    total_paid=person.total_paid if person else ZERO,
                )
            )

        ledger = CategoryLedger(budget.categories)
        categories = {
            row.category.value: CategoryAmounts(
                budgeted=to_decimal(row.budgeted), spent=to_decimal(row.spent)
            )
            for row in ledger.rows()
        }

        budget_per_person = None
        if budget.budget_per_person_amount is not None:
            budget_per_person = Money(
                amount=budget.budget_per_person_amount,
                currency=budget.budget_per_person_currency or budget.total_budget_currency,
            )

        return BudgetResponse(
            id=budget.id,
            trip_id=budget.trip_id,
            total_budget=Money(
                amount=budget.total_budget_amount,
                currency=budget.total_budget_currency,
            ),
            budget_per_person=budget_per_person,
            categories=categories,
            participants=participants,
            split_method=budget.split_method,
            expense_ids=budget.expense_ids,
            created_at=budget.created_at,
            updated_at=budget.updated_at,
        )
