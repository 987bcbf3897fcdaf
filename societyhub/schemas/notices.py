from datetime import datetime
from typing import Optional

from pydantic import Field

from .common import ApiModel


class NoticeBase(ApiModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    admin_id: int
    is_important: bool = False


class NoticeCreate(NoticeBase):
    pass


class NoticeUpdate(ApiModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = Field(default=None, min_length=1)
    is_important: Optional[bool] = None


class NoticeResponse(NoticeBase):
    id: int
    created_at: datetime
