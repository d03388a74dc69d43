"""Base strategy interface"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import List
from uuid import UUID

from pydantic import BaseModel


class ParticipantSplit(BaseModel):
    """Owed increment for one user produced by a split strategy"""

    user_id: UUID
    amount_owed: Decimal


class BaseSplitStrategy(ABC):
    """Base class for split strategies"""

    @abstractmethod
    def calculate_splits(
        self, total_amount: Decimal, participant_data: List[dict]
    ) -> List[ParticipantSplit]:
        """
        Calculate split amounts for participants.

        Args:
            total_amount: Expense amount
            participant_data: List of dicts with at least ``user_id``

        Returns:
            List of ParticipantSplit objects with user_id and amount_owed
        """
        pass
