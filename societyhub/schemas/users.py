import enum
from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from .common import ApiModel, empty_str_to_none


class UserRole(str, enum.Enum):
    admin = "admin"
    resident = "resident"
    watchman = "watchman"


class ResidentType(str, enum.Enum):
    owner = "owner"
    tenant = "tenant"


class FlatStatus(str, enum.Enum):
    occupied = "occupied"
    vacant = "vacant"


class UserBase(ApiModel):
    phone_number: str = Field(min_length=1, max_length=15)
    name: str = Field(min_length=1)
    flat_number: str = Field(min_length=1, max_length=10)
    tower: Optional[str] = Field(default=None, max_length=5)
    role: UserRole = UserRole.resident
    resident_type: Optional[ResidentType] = None
    flat_status: Optional[FlatStatus] = None
    is_active: bool = True

    @field_validator("phone_number", "name", "flat_number", mode="before")
    @classmethod
    def strip_required(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("tower", mode="before")
    @classmethod
    def blank_tower(cls, v):
        return empty_str_to_none(v)


class UserCreate(UserBase):
    pass


class UserUpdate(ApiModel):
    phone_number: Optional[str] = Field(default=None, min_length=1, max_length=15)
    name: Optional[str] = Field(default=None, min_length=1)
    flat_number: Optional[str] = Field(default=None, min_length=1, max_length=10)
    tower: Optional[str] = Field(default=None, max_length=5)
    role: Optional[UserRole] = None
    resident_type: Optional[ResidentType] = None
    flat_status: Optional[FlatStatus] = None
    is_active: Optional[bool] = None


class UserResponse(UserBase):
    id: int
    created_at: datetime
