"""Trip and trip membership models"""
import enum
import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, Enum, ForeignKey, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.database import Base


class TripRole(str, enum.Enum):
    """Role of a member within a trip"""
    ADMIN = "admin"
    MEMBER = "member"
    VIEWER = "viewer"


class Trip(Base):
    """Trip owned by the trip-planning collaborator; only identity and roster live here"""

    __tablename__ = "trips"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    title = Column(String(255), nullable=False)
    organizer_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    organizer = relationship("User", foreign_keys=[organizer_id])
    members = relationship(
        "TripMember",
        back_populates="trip",
        cascade="all, delete-orphan",
        order_by="TripMember.joined_at",
    )
    budget = relationship(
        "Budget", back_populates="trip", uselist=False, cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Trip(id={self.id}, title={self.title})>"


class TripMember(Base):
    """Membership of a user in a trip"""

    __tablename__ = "trip_members"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    trip_id = Column(UUID(as_uuid=True), ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    role = Column(Enum(TripRole), default=TripRole.MEMBER, nullable=False)
    joined_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint('trip_id', 'user_id', name='uq_trip_member'),
    )

    trip = relationship("Trip", back_populates="members")
    user = relationship("User", back_populates="trip_memberships")

    def __repr__(self) -> str:
        return f"<TripMember(trip_id={self.trip_id}, user_id={self.user_id}, role={self.role})>"
