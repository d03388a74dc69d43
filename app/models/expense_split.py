"""Expense split model"""
import uuid
from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, Integer, Numeric
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.database import Base


class ExpenseSplit(Base):
    """Explicit share of an expense owed by one user"""

    __tablename__ = "expense_splits"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    expense_id = Column(UUID(as_uuid=True), ForeignKey("expenses.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), default=0, nullable=False)
    settled = Column(Boolean, default=False, nullable=False)
    position = Column(Integer, default=0, nullable=False)

    # Constraints
    __table_args__ = (
        CheckConstraint('amount >= 0', name='check_split_amount_non_negative'),
    )

    # Relationships
    expense = relationship("Expense", back_populates="splits")
    user = relationship("User")

    def __repr__(self) -> str:
        return f"<ExpenseSplit(expense_id={self.expense_id}, user_id={self.user_id}, amount={self.amount}, settled={self.settled})>"
