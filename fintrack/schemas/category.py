"""
Pydantic schemas for categories and the other reference tables.
"""

from decimal import Decimal

from pydantic import BaseModel, Field

from fintrack.models.reference import DEFAULT_CATEGORY_COLOR, DEFAULT_CATEGORY_ICON


HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


# --- Category Schemas ---

class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    color: str = Field(default=DEFAULT_CATEGORY_COLOR, pattern=HEX_COLOR_PATTERN)
    icon: str = Field(default=DEFAULT_CATEGORY_ICON, max_length=50)


class CategoryUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    color: str | None = Field(default=None, pattern=HEX_COLOR_PATTERN)
    icon: str | None = Field(default=None, max_length=50)

    model_config = {"extra": "forbid"}


class CategoryResponse(BaseModel):
    id: str
    name: str
    color: str | None
    icon: str | None

    model_config = {"from_attributes": True}


class CategoryUsage(BaseModel):
    category_id: str
    category_name: str
    transaction_count: int
    total_amount: Decimal


# --- Reference Schemas ---

class TransactionTypeResponse(BaseModel):
    id: str
    name: str

    model_config = {"from_attributes": True}


class CurrencyResponse(BaseModel):
    id: str
    code: str
    name: str
    symbol: str

    model_config = {"from_attributes": True}
