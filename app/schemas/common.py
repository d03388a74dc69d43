"""Common schemas used across multiple modules"""
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.config import get_settings
from app.utils.decimal_utils import MAX_AMOUNT, parse_decimal


def _default_currency() -> str:
    return get_settings().default_currency


class Money(BaseModel):
    """Amount tagged with a currency code"""
    amount: Decimal = Field(..., ge=0, le=MAX_AMOUNT)
    currency: str = Field(default_factory=_default_currency, min_length=3, max_length=3)

    @field_validator("amount", mode="before")
    @classmethod
    def convert_amount(cls, v):
        """Convert amount to Decimal"""
        return parse_decimal(v)

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        """Upper-case currency codes"""
        return v.upper()


class Receipt(BaseModel):
    """Receipt attachment reference"""
    url: Optional[str] = None
    filename: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class Location(BaseModel):
    """Where an expense happened"""
    name: Optional[str] = None
    lat: Optional[float] = Field(default=None, ge=-90, le=90)
    lng: Optional[float] = Field(default=None, ge=-180, le=180)

    model_config = ConfigDict(from_attributes=True)
