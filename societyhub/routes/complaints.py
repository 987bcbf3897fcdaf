from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
import structlog

from ..config import Settings
from ..deps import get_settings, get_storage
from ..errors import NotFoundError
from ..schemas.complaints import ComplaintCreate, ComplaintResponse, ComplaintStatusUpdate, ComplaintUpdate
from ..services.activity import record_activity
from ..services.status import check_complaint_transition, stamp_for_complaint
from ..storage.provider import Storage


router = APIRouter(prefix="/api/complaints", tags=["complaints"])

logger = structlog.get_logger(__name__)


@router.get("", response_model=List[ComplaintResponse])
def list_complaints(
    resident_id: Optional[int] = Query(default=None, alias="residentId"),
    storage: Storage = Depends(get_storage),
):
    if resident_id is not None:
        return storage.get_complaints_by_resident(resident_id)
    return storage.get_all_complaints()


@router.post("", response_model=ComplaintResponse)
def create_complaint(payload: ComplaintCreate, storage: Storage = Depends(get_storage)):
    complaint = storage.create_complaint(payload)
    logger.info("complaint_created", complaint_id=complaint.id, flat_number=complaint.flat_number)
    record_activity(
        storage,
        type="complaint_submitted",
        title=f"New complaint from {complaint.flat_number}",
        description=complaint.subject,
        user_id=complaint.resident_id,
        metadata={"complaintId": complaint.id, "type": complaint.type},
    )
    return complaint


@router.get("/{complaint_id}", response_model=ComplaintResponse)
def get_complaint(complaint_id: int, storage: Storage = Depends(get_storage)):
    complaint = storage.get_complaint(complaint_id)
    if not complaint:
        raise NotFoundError("Complaint", complaint_id)
    return complaint


@router.put("/{complaint_id}", response_model=ComplaintResponse)
def update_complaint(
    complaint_id: int,
    payload: ComplaintUpdate,
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
):
    current = storage.get_complaint(complaint_id)
    if not current:
        raise NotFoundError("Complaint", complaint_id)
    if payload.status is not None:
        check_complaint_transition(current.status, payload.status, strict=settings.strict_status_transitions)

    complaint = storage.update_complaint(complaint_id, payload)
    if not complaint:
        raise NotFoundError("Complaint", complaint_id)
    logger.info("complaint_updated", complaint_id=complaint.id, status=complaint.status)
    record_activity(
        storage,
        type="complaint_updated",
        title="Complaint Updated",
        description=f"Updated complaint: {complaint.subject}",
        user_id=complaint.resident_id,
        metadata={"complaintId": complaint.id, "status": complaint.status},
    )
    return complaint


@router.put("/{complaint_id}/status", response_model=ComplaintResponse)
def update_complaint_status(
    complaint_id: int,
    payload: ComplaintStatusUpdate,
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
):
    current = storage.get_complaint(complaint_id)
    if not current:
        raise NotFoundError("Complaint", complaint_id)
    check_complaint_transition(current.status, payload.status, strict=settings.strict_status_transitions)

    if payload.status == current.status:
        resolved_at = current.resolved_at
    else:
        resolved_at = stamp_for_complaint(payload.status, datetime.now(timezone.utc))
    complaint = storage.update_complaint_status(complaint_id, payload.status, resolved_at)
    if not complaint:
        raise NotFoundError("Complaint", complaint_id)
    logger.info("complaint_status_updated", complaint_id=complaint.id, status=complaint.status)
    record_activity(
        storage,
        type="complaint_updated",
        title=f"Complaint {complaint.status}",
        description=f"{complaint.subject} - Status updated to {complaint.status}",
        user_id=complaint.resident_id,
        metadata={"complaintId": complaint.id, "status": complaint.status},
    )
    return complaint
