"""Equal split strategy"""

from decimal import Decimal
from typing import List

from app.core.exceptions import EmptyRosterError
from app.services.split_strategies.base import (BaseSplitStrategy,
                                                ParticipantSplit)
from app.utils.decimal_utils import round_decimal, sum_decimals


class EqualSplitStrategy(BaseSplitStrategy):
    """Strategy for splitting an expense equally across the roster"""

    def calculate_splits(
        self, total_amount: Decimal, participant_data: List[dict]
    ) -> List[ParticipantSplit]:
        """
        Calculate equal split for all roster members.

        Share weights on the roster are ignored; everyone owes the same.

        Args:
            total_amount: Expense amount
            participant_data: Roster entries (user_id, etc.), in roster order

        Returns:
            List of ParticipantSplit with equal amounts

        Raises:
            EmptyRosterError: If the roster is empty
        """
        num_participants = len(participant_data)

        if num_participants == 0:
            raise EmptyRosterError()

        base_amount = total_amount / num_participants
        rounded_base = round_decimal(base_amount)

        splits = []
        for participant in participant_data:
            splits.append(
                ParticipantSplit(
                    user_id=participant["user_id"], amount_owed=rounded_base
                )
            )

        # Handle rounding - adjust last participant to ensure total matches
        total_assigned = sum_decimals([split.amount_owed for split in splits])
        difference = total_amount - total_assigned

        if difference != 0:
            splits[-1].amount_owed += difference

        return splits
