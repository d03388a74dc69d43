"""Explicit split strategy"""
from decimal import Decimal
from typing import List

from app.core.exceptions import ValidationError
from app.services.split_strategies.base import BaseSplitStrategy, ParticipantSplit
from app.utils.decimal_utils import to_decimal


class ExplicitSplitStrategy(BaseSplitStrategy):
    """Strategy that passes recorded per-user amounts through unchanged"""

    def calculate_splits(
        self,
        total_amount: Decimal,
        participant_data: List[dict]
    ) -> List[ParticipantSplit]:
        """
        Use the amounts recorded on the expense.

        The amounts are not required to add up to ``total_amount``; a split
        plan covering only part of the expense is kept as entered.

        Args:
            total_amount: Expense amount (unused)
            participant_data: List of dicts with user_id and amount

        Returns:
            List of ParticipantSplit with the recorded amounts

        Raises:
            ValidationError: If an amount is negative
        """
        splits = []
        for participant in participant_data:
            amount_owed = to_decimal(participant.get('amount'))

            if amount_owed < 0:
                raise ValidationError(
                    f"Split amount cannot be negative, got {amount_owed}"
                )

            splits.append(ParticipantSplit(
                user_id=participant['user_id'],
                amount_owed=amount_owed
            ))

        return splits
