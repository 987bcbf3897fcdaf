from typing import List

from fastapi import APIRouter, Depends, Query

from ..deps import get_storage
from ..schemas.activities import ActivityResponse
from ..storage.provider import Storage


router = APIRouter(prefix="/api/activities", tags=["activities"])


@router.get("", response_model=List[ActivityResponse])
def list_activities(limit: int = Query(default=10, ge=1, le=100), storage: Storage = Depends(get_storage)):
    return storage.get_recent_activities(limit)
