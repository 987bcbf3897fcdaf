from decimal import Decimal

from fastapi import APIRouter, Depends

from ..deps import get_storage
from ..schemas.bills import BillStatus
from ..schemas.common import money
from ..schemas.complaints import ComplaintStatus
from ..schemas.dashboard import DashboardStats
from ..schemas.users import UserRole
from ..storage.provider import Storage


router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=DashboardStats)
def dashboard_stats(storage: Storage = Depends(get_storage)):
    # Staff accounts are not tied to a flat
    flats = {u.flat_number for u in storage.get_all_residents() if u.role != UserRole.watchman.value}
    pending = storage.get_pending_bills()
    paid = storage.get_bills_by_status(BillStatus.paid.value)
    complaints = storage.get_all_complaints()
    return DashboardStats(
        total_flats=len(flats),
        pending_dues=money(sum((b.total_amount for b in pending), Decimal("0"))),
        open_complaints=sum(1 for c in complaints if c.status == ComplaintStatus.open.value),
        total_complaints=len(complaints),
        resolved_complaints=sum(1 for c in complaints if c.status == ComplaintStatus.resolved.value),
        paid_bills=len(paid),
        collected_amount=money(sum((b.total_amount for b in paid), Decimal("0"))),
    )
