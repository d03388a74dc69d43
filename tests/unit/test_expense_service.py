"""Unit tests for expense business logic"""

from decimal import Decimal
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest

from app.core.exceptions import AccessDeniedError, InvalidCategory, NotFoundError, ValidationError
from app.models.budget import Category
from app.models.trip import TripRole
from app.schemas.expense import ExpenseCreate, ExpenseUpdate, SplitEntryInput
from app.services.category_ledger import CategoryLedger
from app.services.expense_service import ExpenseService


def _spent(budget, category):
    return CategoryLedger(budget.categories).spent(category)


@pytest.fixture
def roster(alice, bob):
    """Trip roster with alice as organizer"""
    return [(alice.id, TripRole.ADMIN), (bob.id, TripRole.MEMBER)]


class TestValidateExpenseFields:
    """Test shape validation of expense input"""

    def test_valid(self):
        title, amount, category = ExpenseService.validate_expense_fields(
            "  Dinner ", "40.50", "Food"
        )

        assert title == "Dinner"
        assert amount == Decimal("40.50")
        assert category == Category.FOOD

    @pytest.mark.parametrize("title", ["", "   ", None])
    def test_blank_title(self, title):
        with pytest.raises(ValidationError, match="title is required"):
            ExpenseService.validate_expense_fields(title, "10", "food")

    @pytest.mark.parametrize("amount", ["0", "-5", "NaN", "Infinity"])
    def test_amount_not_positive(self, amount):
        with pytest.raises(ValidationError, match="must be positive"):
            ExpenseService.validate_expense_fields("Taxi", amount, "transportation")

    def test_missing_amount(self):
        with pytest.raises(ValidationError, match="amount is required"):
            ExpenseService.validate_expense_fields("Taxi", None, "transportation")

    def test_unknown_category(self):
        with pytest.raises(InvalidCategory) as exc_info:
            ExpenseService.validate_expense_fields("Massage", "60", "spa")

        assert exc_info.value.status_code == 400
        assert exc_info.value.error_type == "InvalidCategory"

    @pytest.mark.parametrize(
        "amount, expected",
        [("10.005", Decimal("10.01")), ("10.004", Decimal("10.00")), ("0.005", Decimal("0.01"))],
    )
    def test_amount_rounded_to_cents(self, amount, expected):
        assert ExpenseService.validate_amount(amount) == expected

    def test_amount_rounding_to_zero(self):
        with pytest.raises(ValidationError, match="must be positive"):
            ExpenseService.validate_amount("0.004")

    @pytest.mark.parametrize("amount", ["10000000000", "9999999999.995"])
    def test_amount_too_large(self, amount):
        with pytest.raises(ValidationError, match="cannot exceed"):
            ExpenseService.validate_amount(amount)

    def test_largest_amount(self):
        assert ExpenseService.validate_amount("9999999999.99") == Decimal("9999999999.99")


class TestValidateSplitAmounts:
    """Test rounding of explicit split amounts"""

    def test_rounded_to_cents(self, alice, bob):
        entries = ExpenseService.validate_split_amounts([
            SplitEntryInput(user_id=alice.id, amount="3.335"),
            SplitEntryInput(user_id=bob.id, amount="6.664", settled=True),
        ])

        assert [(e.user_id, e.amount, e.settled) for e in entries] == [
            (alice.id, Decimal("3.34"), False),
            (bob.id, Decimal("6.66"), True),
        ]

    def test_too_large(self, alice):
        with pytest.raises(ValidationError, match="Split amount cannot exceed"):
            ExpenseService.validate_split_amounts(
                [SplitEntryInput(user_id=alice.id, amount="10000000000")]
            )


class TestValidateTripMembers:
    """Test payer and split users against the trip roster"""

    @pytest.mark.asyncio
    @patch("app.services.expense_service.TripRepository")
    async def test_members_ok(self, mock_trip_repo, mock_db, roster, alice, bob):
        mock_trip_repo.get_trip_roster = AsyncMock(return_value=roster)

        await ExpenseService.validate_trip_members(
            mock_db, uuid4(), bob.id, [SplitEntryInput(user_id=alice.id, amount="5")]
        )

    @pytest.mark.asyncio
    @patch("app.services.expense_service.TripRepository")
    async def test_payer_not_on_trip(self, mock_trip_repo, mock_db, roster, carol):
        mock_trip_repo.get_trip_roster = AsyncMock(return_value=roster)

        with pytest.raises(ValidationError, match="Payer"):
            await ExpenseService.validate_trip_members(mock_db, uuid4(), carol.id, [])

    @pytest.mark.asyncio
    @patch("app.services.expense_service.TripRepository")
    async def test_split_user_not_on_trip(self, mock_trip_repo, mock_db, roster, alice, carol):
        mock_trip_repo.get_trip_roster = AsyncMock(return_value=roster)

        with pytest.raises(ValidationError, match="in split is not a member"):
            await ExpenseService.validate_trip_members(
                mock_db, uuid4(), alice.id, [SplitEntryInput(user_id=carol.id, amount="5")]
            )


class TestAddExpense:
    """Test recording expenses"""

    @pytest.mark.asyncio
    @patch("app.services.expense_service.SummaryService")
    @patch("app.services.expense_service.TripRepository")
    @patch("app.services.expense_service.AccessService")
    @patch("app.services.expense_service.ExpenseRepository")
    @patch("app.services.expense_service.BudgetRepository")
    async def test_add_expense_updates_spent(
        self, mock_budget_repo, mock_expense_repo, mock_access, mock_trip_repo, mock_summary,
        mock_db, make_budget, roster, alice, bob,
    ):
        budget = make_budget([alice, bob], budgeted={"food": 100})
        mock_budget_repo.get_for_update = AsyncMock(return_value=budget)
        mock_access.require_member = AsyncMock(return_value=None)
        mock_trip_repo.get_trip_roster = AsyncMock(return_value=roster)
        mock_expense_repo.create = AsyncMock(side_effect=lambda db, expense: expense)
        mock_expense_repo.get_with_details = AsyncMock(return_value="detailed")
        mock_summary.invalidate = AsyncMock(return_value=True)

        result = await ExpenseService.add_expense(
            budget.id,
            ExpenseCreate(title="Dinner", amount="40", category="food"),
            alice.id,
            mock_db,
        )

        assert result == "detailed"
        assert _spent(budget, Category.FOOD) == Decimal("40")
        created = mock_expense_repo.create.call_args.args[1]
        assert created.paid_by_user_id == alice.id
        assert created.currency == "USD"
        assert created.category == Category.FOOD
        assert budget.version == 1
        assert created.splits == []
        mock_db.commit.assert_awaited_once()
        mock_summary.invalidate.assert_awaited_once_with(budget.id)

    @pytest.mark.asyncio
    @patch("app.services.expense_service.SummaryService")
    @patch("app.services.expense_service.TripRepository")
    @patch("app.services.expense_service.AccessService")
    @patch("app.services.expense_service.ExpenseRepository")
    @patch("app.services.expense_service.BudgetRepository")
    async def test_add_expense_with_explicit_splits(
        self, mock_budget_repo, mock_expense_repo, mock_access, mock_trip_repo, mock_summary,
        mock_db, make_budget, roster, alice, bob,
    ):
        budget = make_budget([alice, bob])
        mock_budget_repo.get_for_update = AsyncMock(return_value=budget)
        mock_access.require_member = AsyncMock(return_value=None)
        mock_trip_repo.get_trip_roster = AsyncMock(return_value=roster)
        mock_expense_repo.create = AsyncMock(side_effect=lambda db, expense: expense)
        mock_expense_repo.get_with_details = AsyncMock()
        mock_summary.invalidate = AsyncMock(return_value=True)

        await ExpenseService.add_expense(
            budget.id,
            ExpenseCreate(
                title="Museum",
                amount="30",
                category="activities",
                paid_by=bob.id,
                currency="eur",
                split_between=[{"user_id": str(alice.id), "amount": "30"}],
            ),
            alice.id,
            mock_db,
        )

        created = mock_expense_repo.create.call_args.args[1]
        assert created.paid_by_user_id == bob.id
        assert created.currency == "EUR"
        assert [(s.user_id, s.amount, s.position) for s in created.splits] == [
            (alice.id, Decimal("30"), 0)
        ]
        assert _spent(budget, Category.ACTIVITIES) == Decimal("30")

    @pytest.mark.asyncio
    @patch("app.services.expense_service.SummaryService")
    @patch("app.services.expense_service.TripRepository")
    @patch("app.services.expense_service.AccessService")
    @patch("app.services.expense_service.ExpenseRepository")
    @patch("app.services.expense_service.BudgetRepository")
    async def test_add_expense_rounds_to_cents(
        self, mock_budget_repo, mock_expense_repo, mock_access, mock_trip_repo, mock_summary,
        mock_db, make_budget, roster, alice, bob,
    ):
        budget = make_budget([alice, bob])
        mock_budget_repo.get_for_update = AsyncMock(return_value=budget)
        mock_access.require_member = AsyncMock(return_value=None)
        mock_trip_repo.get_trip_roster = AsyncMock(return_value=roster)
        mock_expense_repo.create = AsyncMock(side_effect=lambda db, expense: expense)
        mock_expense_repo.get_with_details = AsyncMock()
        mock_summary.invalidate = AsyncMock(return_value=True)

        await ExpenseService.add_expense(
            budget.id,
            ExpenseCreate(
                title="Snacks",
                amount="10.005",
                category="food",
                split_between=[{"user_id": str(bob.id), "amount": "3.335"}],
            ),
            alice.id,
            mock_db,
        )

        created = mock_expense_repo.create.call_args.args[1]
        assert created.amount == Decimal("10.01")
        assert created.splits[0].amount == Decimal("3.34")
        assert _spent(budget, Category.FOOD) == Decimal("10.01")

    @pytest.mark.asyncio
    @patch("app.services.expense_service.TripRepository")
    @patch("app.services.expense_service.AccessService")
    @patch("app.services.expense_service.ExpenseRepository")
    @patch("app.services.expense_service.BudgetRepository")
    async def test_add_expense_out_of_range_changes_nothing(
        self, mock_budget_repo, mock_expense_repo, mock_access, mock_trip_repo,
        mock_db, make_budget, roster, alice, bob,
    ):
        budget = make_budget([alice, bob])
        mock_budget_repo.get_for_update = AsyncMock(return_value=budget)
        mock_access.require_member = AsyncMock(return_value=None)
        mock_trip_repo.get_trip_roster = AsyncMock(return_value=roster)
        mock_expense_repo.create = AsyncMock()

        with pytest.raises(ValidationError, match="cannot exceed"):
            await ExpenseService.add_expense(
                budget.id,
                ExpenseCreate(title="Yacht", amount="10000000000", category="activities"),
                alice.id,
                mock_db,
            )

        mock_expense_repo.create.assert_not_called()
        assert all(row.spent == 0 for row in budget.categories)
        assert budget.version == 0

    @pytest.mark.asyncio
    @patch("app.services.expense_service.AccessService")
    @patch("app.services.expense_service.ExpenseRepository")
    @patch("app.services.expense_service.BudgetRepository")
    async def test_add_expense_invalid_category_changes_nothing(
        self, mock_budget_repo, mock_expense_repo, mock_access, mock_db, make_budget, alice, bob
    ):
        budget = make_budget([alice, bob])
        mock_budget_repo.get_for_update = AsyncMock(return_value=budget)
        mock_access.require_member = AsyncMock(return_value=None)
        mock_expense_repo.create = AsyncMock()

        with pytest.raises(InvalidCategory):
            await ExpenseService.add_expense(
                budget.id,
                ExpenseCreate(title="Concert", amount="60", category="entertainment"),
                alice.id,
                mock_db,
            )

        mock_expense_repo.create.assert_not_called()
        mock_db.commit.assert_not_awaited()
        assert all(row.spent == 0 for row in budget.categories)

    @pytest.mark.asyncio
    @patch("app.services.expense_service.BudgetRepository")
    async def test_add_expense_budget_not_found(self, mock_budget_repo, mock_db, alice):
        mock_budget_repo.get_for_update = AsyncMock(return_value=None)

        with pytest.raises(NotFoundError, match="Budget not found"):
            await ExpenseService.add_expense(
                uuid4(),
                ExpenseCreate(title="Dinner", amount="40", category="food"),
                alice.id,
                mock_db,
            )

    @pytest.mark.asyncio
    @patch("app.services.expense_service.ExpenseRepository")
    @patch("app.services.expense_service.AccessService")
    @patch("app.services.expense_service.BudgetRepository")
    async def test_add_expense_not_on_trip(
        self, mock_budget_repo, mock_access, mock_expense_repo, mock_db, make_budget, alice, carol
    ):
        budget = make_budget([alice])
        mock_budget_repo.get_for_update = AsyncMock(return_value=budget)
        mock_access.require_member = AsyncMock(side_effect=AccessDeniedError())
        mock_expense_repo.create = AsyncMock()

        with pytest.raises(AccessDeniedError):
            await ExpenseService.add_expense(
                budget.id,
                ExpenseCreate(title="Dinner", amount="40", category="food"),
                carol.id,
                mock_db,
            )

        mock_expense_repo.create.assert_not_called()


class TestUpdateExpense:
    """Test editing expenses"""

    @pytest.mark.asyncio
    @patch("app.services.expense_service.SummaryService")
    @patch("app.services.expense_service.AccessService")
    @patch("app.services.expense_service.ExpenseRepository")
    @patch("app.services.expense_service.BudgetRepository")
    async def test_change_amount_and_category_moves_spent(
        self, mock_budget_repo, mock_expense_repo, mock_access, mock_summary,
        mock_db, make_budget, make_expense, alice, bob,
    ):
        budget = make_budget([alice, bob], spent={"food": 40})
        expense = make_expense(budget, "40", "food", alice)
        mock_expense_repo.get_by_id = AsyncMock(return_value=expense)
        mock_expense_repo.get_with_details = AsyncMock(return_value=expense)
        mock_budget_repo.get_for_update = AsyncMock(return_value=budget)
        mock_access.require_payer_or_admin = AsyncMock(return_value=None)
        mock_summary.invalidate = AsyncMock(return_value=True)

        result = await ExpenseService.update_expense(
            expense.id,
            ExpenseUpdate(amount="55", category="transportation"),
            alice.id,
            mock_db,
        )

        assert result.amount == Decimal("55")
        assert result.category == Category.TRANSPORTATION
        assert result.title == "Expense"
        assert _spent(budget, Category.FOOD) == Decimal("0")
        assert _spent(budget, Category.TRANSPORTATION) == Decimal("55")
        assert budget.version == 1
        mock_db.commit.assert_awaited_once()
        mock_summary.invalidate.assert_awaited_once_with(budget.id)

    @pytest.mark.asyncio
    @patch("app.services.expense_service.SummaryService")
    @patch("app.services.expense_service.AccessService")
    @patch("app.services.expense_service.ExpenseRepository")
    @patch("app.services.expense_service.BudgetRepository")
    async def test_title_change_leaves_ledger_alone(
        self, mock_budget_repo, mock_expense_repo, mock_access, mock_summary,
        mock_db, make_budget, make_expense, alice, bob,
    ):
        budget = make_budget([alice, bob], spent={"food": 40})
        expense = make_expense(budget, "40", "food", alice)
        mock_expense_repo.get_by_id = AsyncMock(return_value=expense)
        mock_expense_repo.get_with_details = AsyncMock(return_value=expense)
        mock_budget_repo.get_for_update = AsyncMock(return_value=budget)
        mock_access.require_payer_or_admin = AsyncMock(return_value=None)
        mock_summary.invalidate = AsyncMock(return_value=True)

        await ExpenseService.update_expense(
            expense.id, ExpenseUpdate(title="Late dinner"), alice.id, mock_db
        )

        assert expense.title == "Late dinner"
        assert _spent(budget, Category.FOOD) == Decimal("40")

    @pytest.mark.asyncio
    @patch("app.services.expense_service.SummaryService")
    @patch("app.services.expense_service.TripRepository")
    @patch("app.services.expense_service.AccessService")
    @patch("app.services.expense_service.ExpenseRepository")
    @patch("app.services.expense_service.BudgetRepository")
    async def test_replace_splits(
        self, mock_budget_repo, mock_expense_repo, mock_access, mock_trip_repo, mock_summary,
        mock_db, make_budget, make_expense, roster, alice, bob,
    ):
        budget = make_budget([alice, bob])
        expense = make_expense(budget, "40", "food", alice, splits=[(bob, "40")])
        mock_expense_repo.get_by_id = AsyncMock(return_value=expense)
        mock_expense_repo.get_with_details = AsyncMock(return_value=expense)
        mock_budget_repo.get_for_update = AsyncMock(return_value=budget)
        mock_access.require_payer_or_admin = AsyncMock(return_value=None)
        mock_trip_repo.get_trip_roster = AsyncMock(return_value=roster)
        mock_summary.invalidate = AsyncMock(return_value=True)

        await ExpenseService.update_expense(
            expense.id, ExpenseUpdate(split_between=[]), alice.id, mock_db
        )

        assert expense.splits == []

    @pytest.mark.asyncio
    @patch("app.services.expense_service.AccessService")
    @patch("app.services.expense_service.ExpenseRepository")
    @patch("app.services.expense_service.BudgetRepository")
    async def test_update_invalid_amount_changes_nothing(
        self, mock_budget_repo, mock_expense_repo, mock_access,
        mock_db, make_budget, make_expense, alice, bob,
    ):
        budget = make_budget([alice, bob], spent={"food": 40})
        expense = make_expense(budget, "40", "food", alice)
        mock_expense_repo.get_by_id = AsyncMock(return_value=expense)
        mock_budget_repo.get_for_update = AsyncMock(return_value=budget)
        mock_access.require_payer_or_admin = AsyncMock(return_value=None)

        with pytest.raises(ValidationError):
            await ExpenseService.update_expense(
                expense.id, ExpenseUpdate(amount="-3"), alice.id, mock_db
            )

        assert expense.amount == Decimal("40")
        assert _spent(budget, Category.FOOD) == Decimal("40")
        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    @patch("app.services.expense_service.AccessService")
    @patch("app.services.expense_service.ExpenseRepository")
    @patch("app.services.expense_service.BudgetRepository")
    async def test_update_by_non_payer_non_admin(
        self, mock_budget_repo, mock_expense_repo, mock_access,
        mock_db, make_budget, make_expense, alice, bob,
    ):
        budget = make_budget([alice, bob], spent={"food": 40})
        expense = make_expense(budget, "40", "food", alice)
        mock_expense_repo.get_by_id = AsyncMock(return_value=expense)
        mock_budget_repo.get_for_update = AsyncMock(return_value=budget)
        mock_access.require_payer_or_admin = AsyncMock(side_effect=AccessDeniedError())

        with pytest.raises(AccessDeniedError):
            await ExpenseService.update_expense(
                expense.id, ExpenseUpdate(amount="1"), bob.id, mock_db
            )

        assert expense.amount == Decimal("40")
        mock_access.require_payer_or_admin.assert_awaited_once_with(
            mock_db, expense.trip_id, alice.id, bob.id
        )

    @pytest.mark.asyncio
    @patch("app.services.expense_service.ExpenseRepository")
    async def test_update_not_found(self, mock_expense_repo, mock_db, alice):
        mock_expense_repo.get_by_id = AsyncMock(return_value=None)

        with pytest.raises(NotFoundError, match="Expense not found"):
            await ExpenseService.update_expense(
                uuid4(), ExpenseUpdate(title="x"), alice.id, mock_db
            )


class TestDeleteExpense:
    """Test deleting expenses"""

    @pytest.mark.asyncio
    @patch("app.services.expense_service.SummaryService")
    @patch("app.services.expense_service.AccessService")
    @patch("app.services.expense_service.ExpenseRepository")
    @patch("app.services.expense_service.BudgetRepository")
    async def test_delete_reverses_spent(
        self, mock_budget_repo, mock_expense_repo, mock_access, mock_summary,
        mock_db, make_budget, make_expense, alice, bob,
    ):
        budget = make_budget([alice, bob], spent={"food": 40})
        expense = make_expense(budget, "40", "food", alice)
        mock_expense_repo.get_by_id = AsyncMock(return_value=expense)
        mock_expense_repo.delete = AsyncMock(return_value=None)
        mock_budget_repo.get_for_update = AsyncMock(return_value=budget)
        mock_access.require_payer_or_admin = AsyncMock(return_value=None)
        mock_summary.invalidate = AsyncMock(return_value=True)

        assert await ExpenseService.delete_expense(expense.id, alice.id, mock_db) is True

        assert _spent(budget, Category.FOOD) == Decimal("0")
        mock_expense_repo.delete.assert_awaited_once_with(mock_db, expense)
        assert budget.version == 1
        mock_db.commit.assert_awaited_once()
        mock_summary.invalidate.assert_awaited_once_with(budget.id)

    @pytest.mark.asyncio
    @patch("app.services.expense_service.ExpenseRepository")
    async def test_delete_not_found(self, mock_expense_repo, mock_db, alice):
        mock_expense_repo.get_by_id = AsyncMock(return_value=None)

        with pytest.raises(NotFoundError):
            await ExpenseService.delete_expense(uuid4(), alice.id, mock_db)

    @pytest.mark.asyncio
    @patch("app.services.expense_service.AccessService")
    @patch("app.services.expense_service.ExpenseRepository")
    @patch("app.services.expense_service.BudgetRepository")
    async def test_delete_access_denied(
        self, mock_budget_repo, mock_expense_repo, mock_access,
        mock_db, make_budget, make_expense, alice, bob,
    ):
        budget = make_budget([alice, bob], spent={"food": 40})
        expense = make_expense(budget, "40", "food", alice)
        mock_expense_repo.get_by_id = AsyncMock(return_value=expense)
        mock_expense_repo.delete = AsyncMock()
        mock_budget_repo.get_for_update = AsyncMock(return_value=budget)
        mock_access.require_payer_or_admin = AsyncMock(side_effect=AccessDeniedError())

        with pytest.raises(AccessDeniedError):
            await ExpenseService.delete_expense(expense.id, bob.id, mock_db)

        mock_expense_repo.delete.assert_not_called()
        assert _spent(budget, Category.FOOD) == Decimal("40")
