"""
Demo data for a fresh society: an admin, two residents, a watchman, the
standard billing fields, two December bills, a complaint and a notice.
"""
from decimal import Decimal

import structlog

from ..schemas.billing_fields import BillingFieldCreate
from ..schemas.bills import BillCreate
from ..schemas.complaints import ComplaintCreate
from ..schemas.notices import NoticeCreate
from ..schemas.users import UserCreate


logger = structlog.get_logger(__name__)


DEMO_USERS = [
    {"phone_number": "+919876543210", "name": "Rajesh Kumar", "flat_number": "A-101", "tower": "A",
     "role": "admin", "resident_type": "owner", "flat_status": "occupied"},
    {"phone_number": "+919876543211", "name": "Priya Sharma", "flat_number": "B-205", "tower": "B",
     "role": "resident", "resident_type": "owner", "flat_status": "occupied"},
    {"phone_number": "+919876543212", "name": "Amit Singh", "flat_number": "C-304", "tower": "C",
     "role": "resident", "resident_type": "tenant", "flat_status": "occupied"},
    {"phone_number": "+919876543213", "name": "Security Staff", "flat_number": "GATE", "tower": None,
     "role": "watchman"},
]

DEMO_BILLING_FIELDS = [
    {"name": "maintenance", "label": "General Maintenance", "type": "fixed", "category": "maintenance",
     "default_value": Decimal("2500"), "description": "Monthly upkeep of common areas", "sort_order": 1},
    {"name": "water", "label": "Water Charges", "type": "calculated", "category": "utilities",
     "rate": Decimal("0.05"), "unit": "liters", "formula": "(current - previous) * rate", "sort_order": 2},
    {"name": "electricity_common", "label": "Electricity Common Area", "type": "variable",
     "category": "utilities", "description": "Share of common area electricity", "sort_order": 3},
    {"name": "lift", "label": "Lift Maintenance", "type": "fixed", "category": "maintenance",
     "default_value": Decimal("300"), "sort_order": 4},
]


def seed_demo_data(storage) -> bool:
    """Populate ``storage`` with demo records. Does nothing if any user exists."""
    if storage.get_users():
        logger.info("seed_skipped", reason="users_present")
        return False

    users = [storage.create_user(UserCreate(**u)) for u in DEMO_USERS]
    admin, priya, amit = users[0], users[1], users[2]

    for f in DEMO_BILLING_FIELDS:
        storage.create_billing_field(BillingFieldCreate(**f))

    storage.create_bill(BillCreate(
        flat_number=priya.flat_number,
        resident_id=priya.id,
        month="2024-12",
        previous_reading=84356,
        current_reading=87320,
        maintenance_charges=Decimal("2800"),
        electricity_charges=Decimal("450"),
    ))
    storage.create_bill(BillCreate(
        flat_number=amit.flat_number,
        resident_id=amit.id,
        month="2024-12",
        previous_reading=51200,
        current_reading=53100,
        maintenance_charges=Decimal("2800"),
        electricity_charges=Decimal("380"),
        present_dues=Decimal("1200"),
        status="overdue",
    ))

    storage.create_complaint(ComplaintCreate(
        resident_id=priya.id,
        flat_number=priya.flat_number,
        type="plumbing",
        category="maintenance",
        subject="Kitchen sink leaking",
        description="Water has been leaking under the kitchen sink for two days.",
        priority="high",
    ))

    storage.create_notice(NoticeCreate(
        title="Water supply interruption",
        description="Water supply will be off on Sunday from 10 AM to 2 PM for tank cleaning.",
        admin_id=admin.id,
        is_important=True,
    ))

    logger.info("seed_completed", users=len(users), billing_fields=len(DEMO_BILLING_FIELDS))
    return True
