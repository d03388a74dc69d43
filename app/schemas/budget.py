"""Budget schemas"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.models.budget import SplitMethod
from app.schemas.common import Money
from app.schemas.user import UserSummary
from app.utils.decimal_utils import parse_decimal


class CategoryAmounts(BaseModel):
    """Budgeted and spent amount of one category"""
    budgeted: Decimal
    spent: Decimal


class ParticipantInput(BaseModel):
    """Roster entry in a budget update"""

    user_id: UUID
    share: Decimal = Field(default=Decimal("1"), gt=0)

    @field_validator("share", mode="before")
    @classmethod
    def convert_share(cls, v):
        """Convert share to Decimal"""
        return parse_decimal(v)


class BudgetUpdate(BaseModel):
    """
    Budget replacement patch (admin only).

    Each field that is sent replaces the stored value wholesale. ``categories``
    maps a category name to its budgeted amount.
    """

    total_budget: Optional[Money] = None
    budget_per_person: Optional[Money] = None
    categories: Optional[Dict[str, Decimal]] = None
    participants: Optional[List[ParticipantInput]] = None
    split_method: Optional[SplitMethod] = None


class ParticipantResponse(BaseModel):
    """Roster entry with totals replayed from the budget's expenses"""

    user: UserSummary
    share: Decimal
    total_owed: Decimal = Decimal("0")
    total_paid: Decimal = Decimal("0")


class BudgetResponse(BaseModel):
    """Complete budget response schema"""

    id: UUID
    trip_id: UUID
    total_budget: Money
    budget_per_person: Optional[Money] = None
    categories: Dict[str, CategoryAmounts]
    participants: List[ParticipantResponse]
    split_method: SplitMethod
    expense_ids: List[UUID]
    created_at: datetime
    updated_at: datetime
