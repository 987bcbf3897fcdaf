"""
Billing calculation.

Water is metered: usage is the difference between two readings, charged at
a flat per-liter rate. Everything else on a bill is a fixed or admin-entered
amount. Currency values are Decimals truncated to two places.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, List

import structlog

from ..schemas.bills import BillCreate, BillGenerationRequest, BillItemCreate, BillStatus
from ..schemas.common import money
from .status import stamp_for_bill


logger = structlog.get_logger(__name__)

DEFAULT_WATER_RATE = Decimal("0.05")

METER_ROLLBACK = "meter_rollback"


@dataclass
class BillComputation:
    usage: int
    rate: Decimal
    water_charge: Decimal
    fixed_total: Decimal
    total: Decimal
    warnings: List[str] = field(default_factory=list)


def compute_bill(
    previous_reading: int,
    current_reading: int,
    fixed_charges: Iterable = (),
    rate=DEFAULT_WATER_RATE,
) -> BillComputation:
    """
    Derive usage, water charge and total from two meter readings.

    A reading lower than the previous one (meter rollback or a typo) yields
    zero usage and a ``meter_rollback`` warning instead of a negative charge.

    Args:
        previous_reading: Meter reading at the start of the period (liters)
        current_reading: Meter reading at the end of the period (liters)
        fixed_charges: Amounts added on top of the water charge
        rate: Price per liter

    Returns:
        BillComputation with usage, water_charge, fixed_total and total
    """
    rate = Decimal(str(rate))
    warnings: List[str] = []
    usage = int(current_reading) - int(previous_reading)
    if usage < 0:
        warnings.append(METER_ROLLBACK)
        usage = 0

    water_charge = money(Decimal(usage) * rate)
    fixed_total = money(sum((Decimal(str(c)) for c in fixed_charges), Decimal("0")))
    return BillComputation(
        usage=usage,
        rate=rate,
        water_charge=water_charge,
        fixed_total=fixed_total,
        total=money(water_charge + fixed_total),
        warnings=warnings,
    )


def default_due_date(month: str, due_day: int = 15) -> datetime:
    """Due date for a ``YYYY-MM`` bill: ``due_day`` of the following month."""
    year, mon = (int(p) for p in month.split("-"))
    if mon == 12:
        year, mon = year + 1, 1
    else:
        mon += 1
    return datetime(year, mon, due_day, tzinfo=timezone.utc)


def materialize_bill(data: BillCreate, rate=DEFAULT_WATER_RATE, due_day: int = 15) -> Dict[str, Any]:
    """
    Turn a bill request into the full set of stored columns.

    Readings, when both are present, win over any client-supplied usage or
    water charge. The total is always recomputed server-side.
    """
    water_usage = data.water_usage or 0
    water_charges = money(data.water_charges)
    if data.previous_reading is not None and data.current_reading is not None:
        calc = compute_bill(data.previous_reading, data.current_reading, rate=rate)
        if calc.warnings:
            logger.warning(
                "meter_reading_rollback",
                flat_number=data.flat_number,
                month=data.month,
                previous_reading=data.previous_reading,
                current_reading=data.current_reading,
            )
        water_usage = calc.usage
        water_charges = calc.water_charge

    items_total = sum((money(i.amount) for i in data.items), Decimal("0"))
    total = (
        money(data.maintenance_charges)
        + water_charges
        + money(data.electricity_charges)
        + money(data.other_charges)
        + money(data.present_dues)
        + items_total
    )
    return {
        "flat_number": data.flat_number,
        "resident_id": data.resident_id,
        "month": data.month,
        "previous_reading": data.previous_reading,
        "current_reading": data.current_reading,
        "water_usage": water_usage,
        "water_charges": water_charges,
        "maintenance_charges": money(data.maintenance_charges),
        "electricity_charges": money(data.electricity_charges),
        "other_charges": money(data.other_charges),
        "present_dues": money(data.present_dues),
        "total_amount": money(total),
        "status": data.status,
        "due_date": data.due_date or default_due_date(data.month, due_day),
        "paid_at": stamp_for_bill(data.status, datetime.now(timezone.utc)),
    }


def payment_status(amount, total_amount) -> str:
    """Status implied by a payment of ``amount`` against ``total_amount``."""
    if money(amount) >= money(total_amount):
        return BillStatus.paid.value
    return BillStatus.partially_cleared.value


def generate_monthly_bills(storage, request: BillGenerationRequest):
    """
    Create one bill per reading for ``request.month``.

    Active ``fixed`` billing fields become bill items; those in the
    ``maintenance`` category add up to the maintenance charge and the rest to
    other charges. Flats that already have a bill for the month are skipped.

    Returns:
        (created_bills, skipped_flat_numbers, warnings)
    """
    fixed_fields = [
        f for f in storage.get_billing_fields()
        if f.is_active and f.type == "fixed" and f.default_value is not None
    ]
    maintenance = sum((money(f.default_value) for f in fixed_fields if f.category == "maintenance"), Decimal("0"))
    other = sum((money(f.default_value) for f in fixed_fields if f.category != "maintenance"), Decimal("0"))

    billed_flats = {b.flat_number for b in storage.get_bills_by_month(request.month)}
    created, skipped, warnings = [], [], []
    for reading in request.readings:
        if reading.flat_number in billed_flats:
            skipped.append(reading.flat_number)
            continue
        if reading.current_reading < reading.previous_reading:
            warnings.append(f"{reading.flat_number}: {METER_ROLLBACK}")
        bill = storage.create_bill(
            BillCreate(
                flat_number=reading.flat_number,
                resident_id=reading.resident_id,
                month=request.month,
                previous_reading=reading.previous_reading,
                current_reading=reading.current_reading,
                maintenance_charges=maintenance,
                electricity_charges=reading.electricity_charges,
                other_charges=other,
                present_dues=reading.present_dues,
                due_date=request.due_date,
            )
        )
        # Itemized breakdown; amounts already counted in the bill columns above
        for f in fixed_fields:
            storage.create_bill_item(
                BillItemCreate(bill_id=bill.id, billing_field_id=f.id, label=f.label, amount=f.default_value)
            )
        billed_flats.add(reading.flat_number)
        created.append(bill)

    logger.info("bills_generated", month=request.month, created=len(created), skipped=len(skipped))
    return created, skipped, warnings

