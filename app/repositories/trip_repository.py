"""Trip roster access

The trip-planning service owns trips; the budget engine only reads who is on
a trip and with which role.
"""

from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.trip import Trip, TripRole


class TripRepository:
    """Read-only membership queries for a trip"""

    @staticmethod
    async def get_by_id(db: AsyncSession, trip_id: UUID) -> Optional[Trip]:
        """
        Get trip with its members loaded.

        Args:
            db: Database session
            trip_id: Trip UUID

        Returns:
            Trip if found, None otherwise
        """
        result = await db.execute(
            select(Trip)
            .where(Trip.id == trip_id)
            .options(selectinload(Trip.members))
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def get_trip_roster(
        db: AsyncSession, trip_id: UUID
    ) -> List[Tuple[UUID, TripRole]]:
        """
        Ordered roster of a trip.

        The organizer always counts as an admin, whether or not they are
        listed among the members.

        Args:
            db: Database session
            trip_id: Trip UUID

        Returns:
            List of (user_id, role) in join order, organizer first if unlisted
        """
        trip = await TripRepository.get_by_id(db, trip_id)
        if trip is None:
            return []

        roster: List[Tuple[UUID, TripRole]] = []
        listed = set()
        for member in trip.members:
            role = TripRole.ADMIN if member.user_id == trip.organizer_id else member.role
            roster.append((member.user_id, role))
            listed.add(member.user_id)

        if trip.organizer_id not in listed:
            roster.insert(0, (trip.organizer_id, TripRole.ADMIN))

        return roster

    @staticmethod
    async def is_trip_member(db: AsyncSession, trip_id: UUID, user_id: UUID) -> bool:
        """Whether the user is on the trip roster"""
        roster = await TripRepository.get_trip_roster(db, trip_id)
        return any(member_id == user_id for member_id, _ in roster)

    @staticmethod
    async def is_trip_admin(db: AsyncSession, trip_id: UUID, user_id: UUID) -> bool:
        """Whether the user is the organizer or an admin member of the trip"""
        roster = await TripRepository.get_trip_roster(db, trip_id)
        return any(
            member_id == user_id and role == TripRole.ADMIN
            for member_id, role in roster
        )

