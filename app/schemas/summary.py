"""Settlement summary schemas"""
from decimal import Decimal
from typing import Dict, List
from uuid import UUID

from pydantic import BaseModel

from app.schemas.budget import CategoryAmounts


class PersonBalance(BaseModel):
    """Paid/owed position of one participant"""
    user_id: UUID
    name: str
    total_paid: Decimal
    total_owed: Decimal
    balance: Decimal  # positive: the group owes them, negative: they owe the group


class SettlementSummary(BaseModel):
    """Budget totals and per-person balances derived from all expenses"""
    budget_id: UUID
    currency: str
    total_budgeted: Decimal
    total_spent: Decimal
    remaining: Decimal
    categories: Dict[str, CategoryAmounts]
    person_breakdown: List[PersonBalance]
