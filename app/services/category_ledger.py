"""Per-category budgeted/spent accounting"""

import logging
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Optional

from app.core.exceptions import InvalidCategory
from app.models.budget import BudgetCategory, Category
from app.utils.decimal_utils import ZERO, sum_decimals, to_decimal

logger = logging.getLogger(__name__)


def parse_category(value: Any) -> Category:
    """
    Resolve a category name to the fixed enum.

    Raises:
        InvalidCategory: If the value is not one of the fixed categories
    """
    if isinstance(value, Category):
        return value
    try:
        return Category(str(value).strip().lower())
    except ValueError:
        raise InvalidCategory(value)


def new_category_rows() -> List[BudgetCategory]:
    """Zeroed ledger rows for a freshly created budget"""
    return [
        BudgetCategory(category=category, budgeted=ZERO, spent=ZERO)
        for category in Category
    ]


class CategoryLedger:
    """
    View over a budget's category rows.

    Mutates the rows in place; the caller owns persistence and locking.
    """

    def __init__(
        self,
        rows: Iterable[BudgetCategory],
        attach: Optional[Callable[[BudgetCategory], None]] = None,
    ):
        self._attach = attach
        self._rows: Dict[Category, BudgetCategory] = {}
        for row in rows:
            self._rows[parse_category(row.category)] = row

    @classmethod
    def for_budget(cls, budget) -> "CategoryLedger":
        """Ledger bound to a budget; missing rows are appended to it"""
        return cls(budget.categories, attach=budget.categories.append)

    def _row(self, category: Any) -> BudgetCategory:
        key = parse_category(category)
        row = self._rows.get(key)
        if row is None:
            # Budgets created before a category existed get the row lazily
            row = BudgetCategory(category=key, budgeted=ZERO, spent=ZERO)
            self._rows[key] = row
            if self._attach is not None:
                self._attach(row)
        return row

    def adjust_spent(self, category: Any, delta: Decimal) -> Decimal:
        """
        Add ``delta`` to the category's spent amount.

        A result below zero means the ledger drifted from the expenses it
        tracks; it is clamped to zero and logged.

        Returns:
            New spent amount

        Raises:
            InvalidCategory: If the category is unknown
        """
        row = self._row(category)
        new_spent = to_decimal(row.spent) + to_decimal(delta)
        if new_spent < 0:
            logger.warning(
                "Spent for category %s would become %s, clamping to 0",
                row.category.value,
                new_spent,
            )
            new_spent = ZERO
        row.spent = new_spent
        return new_spent

    def set_budgeted(self, category: Any, amount: Decimal) -> None:
        self._row(category).budgeted = to_decimal(amount)

    def spent(self, category: Any) -> Decimal:
        return to_decimal(self._row(category).spent)

    def budgeted(self, category: Any) -> Decimal:
        return to_decimal(self._row(category).budgeted)

    def total_budgeted(self) -> Decimal:
        return sum_decimals(to_decimal(row.budgeted) for row in self._rows.values())

    def total_spent(self) -> Decimal:
        return sum_decimals(to_decimal(row.spent) for row in self._rows.values())

    def rows(self) -> List[BudgetCategory]:
        """Rows in the fixed category order, including lazily added ones"""
        return [self._row(category) for category in Category]
