import enum
from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from .common import ApiModel, empty_str_to_none


class ComplaintStatus(str, enum.Enum):
    open = "open"
    in_progress = "in_progress"
    resolved = "resolved"


class ComplaintPriority(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"


class ComplaintBase(ApiModel):
    resident_id: int
    flat_number: str = Field(min_length=1, max_length=10)
    type: str = Field(min_length=1, max_length=50)
    category: Optional[str] = Field(default=None, max_length=50)
    subject: str = Field(min_length=1)
    description: str = Field(min_length=1)
    photo_url: Optional[str] = None
    status: ComplaintStatus = ComplaintStatus.open
    priority: ComplaintPriority = ComplaintPriority.medium
    assigned_to: Optional[str] = Field(default=None, max_length=100)

    @field_validator("category", "photo_url", "assigned_to", mode="before")
    @classmethod
    def empty_to_none(cls, v):
        return empty_str_to_none(v)


class ComplaintCreate(ComplaintBase):
    pass


class ComplaintUpdate(ApiModel):
    type: Optional[str] = Field(default=None, min_length=1, max_length=50)
    category: Optional[str] = Field(default=None, max_length=50)
    subject: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = Field(default=None, min_length=1)
    photo_url: Optional[str] = None
    status: Optional[ComplaintStatus] = None
    priority: Optional[ComplaintPriority] = None
    assigned_to: Optional[str] = Field(default=None, max_length=100)
    internal_notes: Optional[str] = None


class ComplaintStatusUpdate(ApiModel):
    status: ComplaintStatus


class ComplaintResponse(ComplaintBase):
    id: int
    internal_notes: Optional[str] = None
    resolved_at: Optional[datetime] = None
    created_at: datetime
