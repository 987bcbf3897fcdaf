import enum
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import AliasChoices, Field, field_validator, model_validator

from .common import ApiModel, empty_str_to_none


MONTH_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"


class BillStatus(str, enum.Enum):
    pending = "pending"
    unpaid = "unpaid"
    paid = "paid"
    overdue = "overdue"
    partially_cleared = "partially_cleared"


class BillItemInput(ApiModel):
    billing_field_id: Optional[int] = None
    label: str = Field(min_length=1, max_length=255)
    amount: Decimal = Field(ge=0)


class BillItemCreate(BillItemInput):
    bill_id: int


class BillItemResponse(BillItemCreate):
    id: int


class BillCreate(ApiModel):
    flat_number: str = Field(min_length=1, max_length=10)
    resident_id: Optional[int] = None
    month: str = Field(pattern=MONTH_PATTERN)
    previous_reading: Optional[int] = Field(default=None, ge=0)
    current_reading: Optional[int] = Field(default=None, ge=0)
    water_usage: Optional[int] = Field(default=None, ge=0)
    water_charges: Decimal = Field(default=Decimal("0"), ge=0)
    maintenance_charges: Decimal = Field(default=Decimal("0"), ge=0)
    electricity_charges: Decimal = Field(default=Decimal("0"), ge=0)
    other_charges: Decimal = Field(default=Decimal("0"), ge=0)
    present_dues: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        validation_alias=AliasChoices("presentDues", "present_dues", "previousDues", "previous_dues"),
    )
    status: BillStatus = BillStatus.pending
    due_date: Optional[datetime] = None
    items: List[BillItemInput] = Field(default_factory=list)


class BillResponse(ApiModel):
    id: int
    flat_number: str
    resident_id: Optional[int] = None
    month: str
    previous_reading: Optional[int] = None
    current_reading: Optional[int] = None
    water_usage: int
    water_charges: Decimal
    maintenance_charges: Decimal
    electricity_charges: Decimal
    other_charges: Decimal
    present_dues: Decimal
    total_amount: Decimal
    status: str
    due_date: datetime
    paid_at: Optional[datetime] = None
    created_at: datetime


class BillStatusUpdate(ApiModel):
    status: Optional[BillStatus] = None
    # Payment recording: amount received against the bill
    amount: Optional[Decimal] = Field(default=None, ge=0)
    payment_method: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("payment_method", "notes", mode="before")
    @classmethod
    def empty_to_none(cls, v):
        return empty_str_to_none(v)

    @model_validator(mode="after")
    def status_or_amount(self):
        if self.status is None and self.amount is None:
            raise ValueError("status or amount is required")
        return self


class BillCalculationRequest(ApiModel):
    previous_reading: int = Field(ge=0)
    current_reading: int = Field(ge=0)
    fixed_charges: List[Decimal] = Field(default_factory=list)
    rate: Optional[Decimal] = Field(default=None, ge=0)


class BillCalculationResponse(ApiModel):
    usage: int
    rate: Decimal
    water_charge: Decimal
    fixed_total: Decimal
    total: Decimal
    warnings: List[str] = Field(default_factory=list)


class MeterReading(ApiModel):
    flat_number: str = Field(min_length=1, max_length=10)
    resident_id: Optional[int] = None
    previous_reading: int = Field(ge=0)
    current_reading: int = Field(ge=0)
    electricity_charges: Decimal = Field(default=Decimal("0"), ge=0)
    present_dues: Decimal = Field(default=Decimal("0"), ge=0)


class BillGenerationRequest(ApiModel):
    month: str = Field(pattern=MONTH_PATTERN)
    due_date: Optional[datetime] = None
    readings: List[MeterReading] = Field(min_length=1)


class BillGenerationResponse(ApiModel):
    created: List[BillResponse]
    skipped: List[str]
    warnings: List[str] = Field(default_factory=list)
