"""Settlement summary: budget totals and per-person balances"""

import logging
from collections import OrderedDict, defaultdict
from decimal import Decimal
from typing import Dict, Iterable, List
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.core.exceptions import EmptyRosterError, NotFoundError
from app.models.budget import Category
from app.repositories.budget_repository import BudgetRepository
from app.schemas.budget import CategoryAmounts
from app.schemas.summary import PersonBalance, SettlementSummary
from app.services.access_service import AccessService
from app.services.cache_service import CacheService
from app.services.category_ledger import CategoryLedger, parse_category
from app.services.split_strategies import calculate_owed
from app.utils.decimal_utils import ZERO, sum_decimals, to_decimal

settings = get_settings()
logger = logging.getLogger(__name__)


class CachedSummary(BaseModel):
    """Summary stored in the cache with the budget version it was computed from"""
    version: int
    summary: SettlementSummary


def roster_of(budget) -> List[dict]:
    """Budget participants as split-strategy input, in roster order"""
    return [{"user_id": participant.user_id} for participant in budget.participants]


def split_plan_of(expense) -> List[dict]:
    """Explicit split entries of an expense as split-strategy input"""
    return [
        {"user_id": split.user_id, "amount": split.amount}
        for split in expense.splits
    ]


def _participant_name(participant) -> str:
    user = participant.user
    if user is not None and user.name:
        return user.name
    return str(participant.user_id)


def summarize(budget, expenses: Iterable) -> SettlementSummary:
    """
    Replay every expense of a budget against its roster.

    Spent per category is recomputed from the expenses rather than read from
    the stored accumulators; a mismatch is logged. The result does not depend
    on the order of ``expenses``.

    Args:
        budget: Budget with categories and participants loaded
        expenses: All live expenses of the budget, splits loaded

    Returns:
        SettlementSummary

    Raises:
        EmptyRosterError: If the budget has no participants
    """
    roster = roster_of(budget)
    if not roster:
        raise EmptyRosterError(f"Budget {budget.id} has no participants")

    expenses = list(expenses)
    ledger = CategoryLedger(budget.categories)

    spent: Dict[Category, Decimal] = defaultdict(lambda: ZERO)
    for expense in expenses:
        spent[parse_category(expense.category)] += to_decimal(expense.amount)

    categories: Dict[str, CategoryAmounts] = {}
    for category in Category:
        stored = ledger.spent(category)
        if stored != spent[category]:
            logger.warning(
                "Budget %s category %s: stored spent %s differs from expenses total %s",
                budget.id,
                category.value,
                stored,
                spent[category],
            )
        categories[category.value] = CategoryAmounts(
            budgeted=ledger.budgeted(category), spent=spent[category]
        )

    total_budgeted = ledger.total_budgeted()
    total_spent = sum_decimals(spent.values())

    breakdown: "OrderedDict[UUID, Dict]" = OrderedDict()
    for participant in budget.participants:
        breakdown[participant.user_id] = {
            "user_id": participant.user_id,
            "name": _participant_name(participant),
            "total_paid": ZERO,
            "total_owed": ZERO,
        }

    for expense in expenses:
        amount = to_decimal(expense.amount)
        payer = breakdown.get(expense.paid_by_user_id)
        if payer is not None:
            payer["total_paid"] += amount

        owed = calculate_owed(amount, split_plan_of(expense), roster)
        for user_id, owed_amount in owed.items():
            person = breakdown.get(user_id)
            # Split entries for users no longer on the roster are not counted
            if person is not None:
                person["total_owed"] += owed_amount

    person_breakdown = [
        PersonBalance(
            balance=person["total_paid"] - person["total_owed"],
            **person,
        )
        for person in breakdown.values()
    ]

    return SettlementSummary(
        budget_id=budget.id,
        currency=budget.total_budget_currency,
        total_budgeted=total_budgeted,
        total_spent=total_spent,
        remaining=total_budgeted - total_spent,
        categories=categories,
        person_breakdown=person_breakdown,
    )


class SummaryService:
    """Service for settlement summaries"""

    @staticmethod
    def _cache_key(budget_id: UUID) -> str:
        return f"budget_summary:{budget_id}"

    @staticmethod
    async def get_summary(
        budget_id: UUID,
        user_id: UUID,
        db: AsyncSession,
        use_cache: bool = True,
    ) -> SettlementSummary:
        """
        Get the settlement summary of a budget.

        Args:
            budget_id: Budget ID
            user_id: User requesting the summary
            db: Database session
            use_cache: Whether to use cache (default: True)

        Returns:
            SettlementSummary

        Raises:
            NotFoundError: If the budget does not exist
            AccessDeniedError: If the user is not on the trip
            EmptyRosterError: If the budget has no participants
        """
        budget = await BudgetRepository.get_by_id(db, budget_id)
        if not budget:
            raise NotFoundError("Budget not found")

        await AccessService.require_member(db, budget.trip_id, user_id)

        # A summary computed from an older load of the budget may land in the
        # cache after a write; it is only served while the version matches.
        version = budget.version or 0
        cache_key = SummaryService._cache_key(budget_id)
        if use_cache:
            cached = await CacheService.get(cache_key)
            if cached:
                entry = CachedSummary.model_validate_json(cached)
                if entry.version == version:
                    return entry.summary
                logger.debug(
                    "Discarding cached summary of budget %s at version %s (now %s)",
                    budget_id, entry.version, version,
                )

        summary = summarize(budget, budget.expenses)

        if use_cache:
            entry = CachedSummary(version=version, summary=summary)
            await CacheService.set(
                cache_key, entry.model_dump_json(), ttl=settings.summary_cache_ttl
            )

        return summary

    @staticmethod
    async def invalidate(budget_id: UUID) -> bool:
        """
        Drop the cached summary after any change to the budget or its expenses.

        Args:
            budget_id: Budget ID

        Returns:
            True if successful
        """
        return await CacheService.delete(SummaryService._cache_key(budget_id))
