"""SQLAlchemy models"""
from app.models.user import User
from app.models.trip import Trip, TripMember, TripRole
from app.models.budget import Budget, BudgetCategory, BudgetParticipant, Category, SplitMethod
from app.models.expense import Expense
from app.models.expense_split import ExpenseSplit

__all__ = [
    "User",
    "Trip",
    "TripMember",
    "TripRole",
    "Budget",
    "BudgetCategory",
    "BudgetParticipant",
    "Category",
    "SplitMethod",
    "Expense",
    "ExpenseSplit",
]
