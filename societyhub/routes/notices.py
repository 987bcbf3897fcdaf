from typing import List

from fastapi import APIRouter, Depends, status

from ..deps import get_storage
from ..errors import NotFoundError
from ..schemas.notices import NoticeCreate, NoticeResponse, NoticeUpdate
from ..services.activity import record_activity
from ..storage.provider import Storage


router = APIRouter(prefix="/api/notices", tags=["notices"])


@router.get("", response_model=List[NoticeResponse])
def list_notices(storage: Storage = Depends(get_storage)):
    return storage.get_all_notices()


@router.post("", response_model=NoticeResponse, status_code=status.HTTP_201_CREATED)
def create_notice(payload: NoticeCreate, storage: Storage = Depends(get_storage)):
    notice = storage.create_notice(payload)
    record_activity(
        storage,
        type="notice_published",
        title="Notice Published",
        description=notice.title,
        user_id=notice.admin_id,
        metadata={"noticeId": notice.id},
    )
    return notice


@router.get("/{notice_id}", response_model=NoticeResponse)
def get_notice(notice_id: int, storage: Storage = Depends(get_storage)):
    notice = storage.get_notice(notice_id)
    if not notice:
        raise NotFoundError("Notice", notice_id)
    return notice


@router.put("/{notice_id}", response_model=NoticeResponse)
def update_notice(notice_id: int, payload: NoticeUpdate, storage: Storage = Depends(get_storage)):
    notice = storage.update_notice(notice_id, payload)
    if not notice:
        raise NotFoundError("Notice", notice_id)
    return notice


@router.delete("/{notice_id}")
def delete_notice(notice_id: int, storage: Storage = Depends(get_storage)):
    if not storage.delete_notice(notice_id):
        raise NotFoundError("Notice", notice_id)
    return {"success": True}
