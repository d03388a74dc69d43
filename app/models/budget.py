"""Budget aggregate models"""
import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (CheckConstraint, Column, DateTime, Enum, ForeignKey,
                        Integer, Numeric, String, UniqueConstraint)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.database import Base


class Category(str, enum.Enum):
    """Fixed set of spending categories"""
    ACCOMMODATION = "accommodation"
    FOOD = "food"
    ACTIVITIES = "activities"
    TRANSPORTATION = "transportation"
    SHOPPING = "shopping"
    MISCELLANEOUS = "miscellaneous"


class SplitMethod(str, enum.Enum):
    """How the group intends to split shared costs"""
    EQUAL = "equal"
    CUSTOM = "custom"
    BY_PERSON = "by_person"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Budget(Base):
    """Per-trip budget: totals, category ledger, roster and expenses"""

    __tablename__ = "budgets"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    trip_id = Column(
        UUID(as_uuid=True),
        ForeignKey("trips.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    total_budget_amount = Column(Numeric(12, 2), default=Decimal("0"), nullable=False)
    total_budget_currency = Column(String(3), default="USD", nullable=False)
    budget_per_person_amount = Column(Numeric(12, 2), nullable=True)
    budget_per_person_currency = Column(String(3), nullable=True)
    split_method = Column(
        Enum(SplitMethod, values_callable=_enum_values),
        default=SplitMethod.EQUAL,
        nullable=False,
    )
    # Bumped by every write; cached summaries are tied to it
    version = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint('total_budget_amount >= 0', name='check_total_budget_non_negative'),
    )

    # Relationships
    trip = relationship("Trip", back_populates="budget")
    categories = relationship(
        "BudgetCategory", back_populates="budget", cascade="all, delete-orphan"
    )
    participants = relationship(
        "BudgetParticipant",
        back_populates="budget",
        cascade="all, delete-orphan",
        order_by="BudgetParticipant.position",
    )
    expenses = relationship(
        "Expense",
        back_populates="budget",
        cascade="all, delete-orphan",
        order_by="Expense.created_at.desc()",
    )

    @property
    def expense_ids(self):
        return [expense.id for expense in self.expenses]

    def touch(self) -> None:
        """Mark the budget changed inside the current write transaction"""
        self.version = (self.version or 0) + 1
        self.updated_at = datetime.utcnow()

    def __repr__(self) -> str:
        return f"<Budget(id={self.id}, trip_id={self.trip_id}, total={self.total_budget_amount})>"


class BudgetCategory(Base):
    """Budgeted and spent amounts for one category of a budget"""

    __tablename__ = "budget_categories"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    budget_id = Column(UUID(as_uuid=True), ForeignKey("budgets.id", ondelete="CASCADE"), nullable=False, index=True)
    category = Column(Enum(Category, values_callable=_enum_values), nullable=False)
    budgeted = Column(Numeric(12, 2), default=Decimal("0"), nullable=False)
    spent = Column(Numeric(12, 2), default=Decimal("0"), nullable=False)

    __table_args__ = (
        UniqueConstraint('budget_id', 'category', name='uq_budget_category'),
        CheckConstraint('budgeted >= 0', name='check_budgeted_non_negative'),
        CheckConstraint('spent >= 0', name='check_spent_non_negative'),
    )

    budget = relationship("Budget", back_populates="categories")

    def __repr__(self) -> str:
        return f"<BudgetCategory(category={self.category}, budgeted={self.budgeted}, spent={self.spent})>"


class BudgetParticipant(Base):
    """Member of the budget roster"""

    __tablename__ = "budget_participants"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    budget_id = Column(UUID(as_uuid=True), ForeignKey("budgets.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    share = Column(Numeric(8, 2), default=Decimal("1"), nullable=False)
    position = Column(Integer, default=0, nullable=False)

    __table_args__ = (
        UniqueConstraint('budget_id', 'user_id', name='uq_budget_participant'),
        CheckConstraint('share > 0', name='check_share_positive'),
    )

    budget = relationship("Budget", back_populates="participants")
    user = relationship("User")

    def __repr__(self) -> str:
        return f"<BudgetParticipant(budget_id={self.budget_id}, user_id={self.user_id}, share={self.share})>"
