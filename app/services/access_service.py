"""Authorization gates backed by the trip roster"""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AccessDeniedError
from app.repositories.trip_repository import TripRepository


class AccessService:
    """Checks who may read or change a trip's budget"""

    @staticmethod
    async def require_member(db: AsyncSession, trip_id: UUID, user_id: UUID) -> None:
        """
        Raises:
            AccessDeniedError: If the user is not on the trip roster
        """
        if not await TripRepository.is_trip_member(db, trip_id, user_id):
            raise AccessDeniedError()

    @staticmethod
    async def require_admin(db: AsyncSession, trip_id: UUID, user_id: UUID) -> None:
        """
        Raises:
            AccessDeniedError: If the user is neither organizer nor admin
        """
        if not await TripRepository.is_trip_admin(db, trip_id, user_id):
            raise AccessDeniedError()

    @staticmethod
    async def require_payer_or_admin(
        db: AsyncSession, trip_id: UUID, paid_by: UUID, user_id: UUID
    ) -> None:
        """
        Only the member who paid an expense, or a trip admin, may change it.

        Raises:
            AccessDeniedError: Otherwise
        """
        if paid_by == user_id:
            return
        await AccessService.require_admin(db, trip_id, user_id)
