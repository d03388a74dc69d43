"""Expense schemas"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.common import Location, Receipt
from app.schemas.user import UserSummary
from app.utils.decimal_utils import parse_decimal


class SplitEntryInput(BaseModel):
    """Amount one user owes for an expense"""

    user_id: UUID
    amount: Decimal = Field(..., ge=0)
    settled: bool = False

    @field_validator("amount", mode="before")
    @classmethod
    def convert_to_decimal(cls, v):
        """Convert numeric values to Decimal"""
        return parse_decimal(v)


class ExpenseCreate(BaseModel):
    """
    Schema for recording an expense.

    Title, amount and category are checked by the expense service so that
    bad values surface as ValidationError / InvalidCategory.
    """

    title: str = Field(..., max_length=200)
    description: Optional[str] = None
    amount: Decimal
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    category: str
    paid_by: Optional[UUID] = None
    split_between: List[SplitEntryInput] = Field(default_factory=list)
    receipt: Optional[Receipt] = None
    expense_date: Optional[date] = None
    location: Optional[Location] = None
    is_shared: bool = True

    @field_validator("amount", mode="before")
    @classmethod
    def convert_amount(cls, v):
        """Convert amount to Decimal"""
        return parse_decimal(v)


class ExpenseUpdate(BaseModel):
    """Partial update of an expense; only fields sent are changed"""

    title: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = None
    amount: Optional[Decimal] = None
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    category: Optional[str] = None
    paid_by: Optional[UUID] = None
    split_between: Optional[List[SplitEntryInput]] = None
    receipt: Optional[Receipt] = None
    expense_date: Optional[date] = None
    location: Optional[Location] = None
    is_shared: Optional[bool] = None

    @field_validator("amount", mode="before")
    @classmethod
    def convert_amount(cls, v):
        """Convert amount to Decimal"""
        return parse_decimal(v)


class SplitEntryResponse(BaseModel):
    """Response schema for a split entry"""

    user: UserSummary
    amount: Decimal
    settled: bool

    model_config = ConfigDict(from_attributes=True)


class ExpenseResponse(BaseModel):
    """Complete expense response schema"""

    id: UUID
    budget_id: UUID
    trip_id: UUID
    title: str
    description: Optional[str] = None
    amount: Decimal
    currency: str
    category: str
    paid_by: UserSummary = Field(..., validation_alias="payer")
    split_between: List[SplitEntryResponse] = Field(..., validation_alias="splits")
    receipt: Optional[Receipt] = None
    expense_date: date
    location: Optional[Location] = None
    is_shared: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    @field_validator("category", mode="before")
    @classmethod
    def category_value(cls, v):
        """Render the category enum as its name"""
        return getattr(v, "value", v)


class ExpenseListResponse(BaseModel):
    """Response schema for expense list, newest first"""

    items: List[ExpenseResponse]
    total_items: int
