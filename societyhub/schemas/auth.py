from typing import Optional

from pydantic import Field, field_validator

from .common import ApiModel, empty_str_to_none
from .users import UserResponse


class OtpRequest(ApiModel):
    phone_number: str = Field(min_length=1, max_length=15)


class OtpResponse(ApiModel):
    sent: bool
    expires_in: int


class LoginRequest(ApiModel):
    phone_number: str = Field(min_length=1, max_length=15)
    otp: str = Field(min_length=4, max_length=8)
    # Used only when the number is not registered yet
    name: Optional[str] = None
    flat_number: Optional[str] = Field(default=None, max_length=10)
    tower: Optional[str] = Field(default=None, max_length=5)

    @field_validator("name", "flat_number", "tower", mode="before")
    @classmethod
    def empty_to_none(cls, v):
        return empty_str_to_none(v)


class LoginResponse(ApiModel):
    user: UserResponse
    access_token: str
    token_type: str = "bearer"
    registered: bool = False
