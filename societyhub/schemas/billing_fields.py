import enum
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field, field_validator

from .common import ApiModel, empty_str_to_none


class BillingFieldType(str, enum.Enum):
    fixed = "fixed"
    variable = "variable"
    calculated = "calculated"


class BillingFieldBase(ApiModel):
    name: str = Field(min_length=1, max_length=100)
    label: str = Field(min_length=1, max_length=255)
    type: BillingFieldType
    category: str = Field(min_length=1, max_length=50)
    default_value: Optional[Decimal] = Field(default=None, ge=0)
    rate: Optional[Decimal] = Field(default=None, ge=0)
    unit: Optional[str] = Field(default=None, max_length=20)
    description: Optional[str] = None
    # Shown to admins as documentation of how the value is derived
    formula: Optional[str] = None
    sort_order: int = 0
    is_active: bool = True

    @field_validator("unit", "description", "formula", mode="before")
    @classmethod
    def empty_to_none(cls, v):
        return empty_str_to_none(v)


class BillingFieldCreate(BillingFieldBase):
    pass


class BillingFieldUpdate(ApiModel):
    label: Optional[str] = Field(default=None, min_length=1, max_length=255)
    type: Optional[BillingFieldType] = None
    category: Optional[str] = Field(default=None, min_length=1, max_length=50)
    default_value: Optional[Decimal] = Field(default=None, ge=0)
    rate: Optional[Decimal] = Field(default=None, ge=0)
    unit: Optional[str] = Field(default=None, max_length=20)
    description: Optional[str] = None
    formula: Optional[str] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class BillingFieldResponse(BillingFieldBase):
    id: int
    created_at: datetime
