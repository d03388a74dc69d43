"""Expense model"""
import uuid
from datetime import date, datetime
from sqlalchemy import (Boolean, CheckConstraint, Column, Date, DateTime, Enum,
                        Float, ForeignKey, Numeric, String, Text)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.database import Base
from app.models.budget import Category, _enum_values


class Expense(Base):
    """Expense recorded against a trip budget"""

    __tablename__ = "expenses"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    budget_id = Column(UUID(as_uuid=True), ForeignKey("budgets.id", ondelete="CASCADE"), nullable=False, index=True)
    trip_id = Column(UUID(as_uuid=True), ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), default="USD", nullable=False)
    category = Column(Enum(Category, values_callable=_enum_values), nullable=False)
    paid_by_user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    receipt_url = Column(String(1000), nullable=True)
    receipt_filename = Column(String(255), nullable=True)
    expense_date = Column(Date, default=date.today, nullable=False)
    location_name = Column(String(255), nullable=True)
    location_lat = Column(Float, nullable=True)
    location_lng = Column(Float, nullable=True)
    is_shared = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Constraints
    __table_args__ = (
        CheckConstraint('amount > 0', name='check_amount_positive'),
    )

    # Relationships
    budget = relationship("Budget", back_populates="expenses")
    payer = relationship("User", back_populates="expenses_paid", foreign_keys=[paid_by_user_id])
    splits = relationship(
        "ExpenseSplit",
        back_populates="expense",
        cascade="all, delete-orphan",
        order_by="ExpenseSplit.position",
    )

    @property
    def receipt(self):
        if self.receipt_url is None and self.receipt_filename is None:
            return None
        return {"url": self.receipt_url, "filename": self.receipt_filename}

    @property
    def location(self):
        if self.location_name is None and self.location_lat is None and self.location_lng is None:
            return None
        return {"name": self.location_name, "lat": self.location_lat, "lng": self.location_lng}

    def __repr__(self) -> str:
        return f"<Expense(id={self.id}, title={self.title}, amount={self.amount}, category={self.category})>"
