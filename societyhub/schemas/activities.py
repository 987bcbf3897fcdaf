from datetime import datetime
from typing import Optional

from pydantic import Field

from .common import ApiModel


class ActivityCreate(ApiModel):
    type: str = Field(min_length=1, max_length=50)
    title: str = Field(min_length=1)
    description: Optional[str] = None
    user_id: Optional[int] = None
    metadata: Optional[str] = None  # JSON string, opaque to the API


class ActivityResponse(ActivityCreate):
    id: int
    created_at: datetime
