"""User schemas"""

from uuid import UUID

from pydantic import BaseModel, ConfigDict


class UserSummary(BaseModel):
    """Public view of a user embedded in budget and expense responses"""

    id: UUID
    name: str
    email: str

    model_config = ConfigDict(from_attributes=True)
