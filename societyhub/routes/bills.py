from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
import structlog

from ..config import Settings
from ..deps import get_settings, get_storage
from ..errors import NotFoundError
from ..schemas.bills import (
    MONTH_PATTERN,
    BillCalculationRequest,
    BillCalculationResponse,
    BillCreate,
    BillGenerationRequest,
    BillGenerationResponse,
    BillItemResponse,
    BillResponse,
    BillStatus,
    BillStatusUpdate,
)
from ..services.activity import record_activity
from ..services.billing import compute_bill, generate_monthly_bills, payment_status
from ..services.status import check_bill_transition, is_settled, stamp_for_bill
from ..storage.provider import Storage


router = APIRouter(prefix="/api/bills", tags=["bills"])

logger = structlog.get_logger(__name__)


def _current_month() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m")


@router.get("", response_model=List[BillResponse])
def list_bills(
    month: Optional[str] = Query(default=None, pattern=MONTH_PATTERN),
    flat_number: Optional[str] = Query(default=None, alias="flatNumber"),
    status: Optional[BillStatus] = None,
    storage: Storage = Depends(get_storage),
):
    status = status.value if status else None
    # "pending" is the dashboard's notion of outstanding: anything not yet paid
    if month:
        bills = storage.get_bills_by_month(month)
    elif flat_number:
        bills = storage.get_bills_by_flat(flat_number)
    elif status == BillStatus.pending.value:
        bills = storage.get_pending_bills()
    elif status:
        bills = storage.get_bills_by_status(status)
    else:
        bills = storage.get_bills_by_month(_current_month())

    if flat_number:
        bills = [b for b in bills if b.flat_number == flat_number]
    if status == BillStatus.pending.value:
        bills = [b for b in bills if not is_settled(b.status)]
    elif status:
        bills = [b for b in bills if b.status == status]
    return bills


@router.post("", response_model=BillResponse)
def create_bill(payload: BillCreate, storage: Storage = Depends(get_storage)):
    bill = storage.create_bill(payload)
    logger.info("bill_created", bill_id=bill.id, flat_number=bill.flat_number, month=bill.month)
    record_activity(
        storage,
        type="bill_generated",
        title=f"Bill generated for {bill.flat_number}",
        description=f"Monthly maintenance bill of ₹{bill.total_amount} generated",
        user_id=bill.resident_id,
        metadata={"billId": bill.id, "amount": bill.total_amount},
    )
    return bill


@router.post("/calculate", response_model=BillCalculationResponse)
def calculate_bill(payload: BillCalculationRequest, storage: Storage = Depends(get_storage)):
    rate = payload.rate if payload.rate is not None else storage.water_rate
    calc = compute_bill(payload.previous_reading, payload.current_reading, payload.fixed_charges, rate=rate)
    if calc.warnings:
        logger.warning("bill_calculation_warnings", warnings=calc.warnings)
    return BillCalculationResponse(
        usage=calc.usage,
        rate=calc.rate,
        water_charge=calc.water_charge,
        fixed_total=calc.fixed_total,
        total=calc.total,
        warnings=calc.warnings,
    )


@router.post("/generate", response_model=BillGenerationResponse)
def generate_bills(payload: BillGenerationRequest, storage: Storage = Depends(get_storage)):
    created, skipped, warnings = generate_monthly_bills(storage, payload)
    if created:
        record_activity(
            storage,
            type="bill_generated",
            title=f"{len(created)} bills generated for {payload.month}",
            description=f"Skipped {len(skipped)} flats already billed" if skipped else None,
            metadata={"month": payload.month, "billIds": [b.id for b in created]},
        )
    return BillGenerationResponse(created=created, skipped=skipped, warnings=warnings)


@router.get("/{bill_id}", response_model=BillResponse)
def get_bill(bill_id: int, storage: Storage = Depends(get_storage)):
    bill = storage.get_bill(bill_id)
    if not bill:
        raise NotFoundError("Bill", bill_id)
    return bill


@router.get("/{bill_id}/items", response_model=List[BillItemResponse])
def list_bill_items(bill_id: int, storage: Storage = Depends(get_storage)):
    if not storage.get_bill(bill_id):
        raise NotFoundError("Bill", bill_id)
    return storage.get_bill_items(bill_id)


@router.put("/{bill_id}/status", response_model=BillResponse)
def update_bill_status(
    bill_id: int,
    payload: BillStatusUpdate,
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
):
    bill = storage.get_bill(bill_id)
    if not bill:
        raise NotFoundError("Bill", bill_id)

    target = payload.status or payment_status(payload.amount, bill.total_amount)
    check_bill_transition(bill.status, target, strict=settings.strict_status_transitions)
    # Re-sending the current status keeps the earlier timestamp
    paid_at = bill.paid_at if target == bill.status else None
    if paid_at is None:
        paid_at = stamp_for_bill(target, datetime.now(timezone.utc))

    previous = bill.status
    bill = storage.update_bill_status(bill_id, target, paid_at)
    if not bill:
        raise NotFoundError("Bill", bill_id)
    logger.info("bill_status_updated", bill_id=bill.id, status=bill.status)

    newly_paid = bill.status == BillStatus.paid.value and previous != BillStatus.paid.value
    if payload.amount is not None or newly_paid:
        amount = payload.amount if payload.amount is not None else bill.total_amount
        settled = "paid" if bill.status == BillStatus.paid.value else "partially paid"
        record_activity(
            storage,
            type="payment_received",
            title=f"Payment received from {bill.flat_number}",
            description=f"Maintenance bill of ₹{bill.total_amount} {settled}",
            user_id=bill.resident_id,
            metadata={
                "billId": bill.id,
                "amount": amount,
                "paymentMethod": payload.payment_method,
                "notes": payload.notes,
            },
        )
    return bill
