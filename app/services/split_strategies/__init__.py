"""Split calculation strategies"""

from collections import defaultdict
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from app.services.split_strategies.base import (BaseSplitStrategy,
                                                ParticipantSplit)
from app.services.split_strategies.equal_split import EqualSplitStrategy
from app.services.split_strategies.explicit_split import ExplicitSplitStrategy
from app.utils.decimal_utils import to_decimal


def get_split_strategy(split_between: Optional[List[dict]]) -> BaseSplitStrategy:
    """
    Get the strategy matching an expense's split plan.

    Args:
        split_between: Recorded per-user amounts, possibly empty

    Returns:
        ExplicitSplitStrategy when amounts were recorded, otherwise
        EqualSplitStrategy over the roster
    """
    if split_between:
        return ExplicitSplitStrategy()
    return EqualSplitStrategy()


def calculate_owed(
    total_amount: Decimal,
    split_between: Optional[List[dict]],
    roster: List[dict],
) -> Dict[UUID, Decimal]:
    """
    Owed increment per user for a single expense.

    Args:
        total_amount: Expense amount
        split_between: Explicit ``{user_id, amount}`` entries, possibly empty
        roster: Budget participants in roster order (``{user_id, ...}``)

    Returns:
        Mapping of user_id to the amount that user owes for this expense.
        Repeated users in an explicit plan accumulate.

    Raises:
        EmptyRosterError: If an equal split is needed and the roster is empty
    """
    total_amount = to_decimal(total_amount)
    strategy = get_split_strategy(split_between)
    participant_data = split_between if split_between else roster

    owed: Dict[UUID, Decimal] = defaultdict(lambda: Decimal("0"))
    for split in strategy.calculate_splits(total_amount, participant_data):
        owed[split.user_id] += split.amount_owed

    return dict(owed)


__all__ = [
    "BaseSplitStrategy",
    "ParticipantSplit",
    "EqualSplitStrategy",
    "ExplicitSplitStrategy",
    "get_split_strategy",
    "calculate_owed",
]
