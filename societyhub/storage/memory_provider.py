"""
In-memory storage provider for demos and tests.
Keeps every entity in a dict keyed by id. Single process only; there is no
locking, so concurrent writers can interleave.
"""
import itertools
from datetime import datetime, timezone
from typing import Dict, List, Optional

from ..errors import DuplicatePhoneError
from ..schemas.activities import ActivityCreate, ActivityResponse
from ..schemas.billing_fields import BillingFieldCreate, BillingFieldResponse, BillingFieldUpdate
from ..schemas.bills import BillCreate, BillItemCreate, BillItemResponse, BillResponse
from ..schemas.complaints import ComplaintCreate, ComplaintResponse, ComplaintUpdate
from ..schemas.notices import NoticeCreate, NoticeResponse, NoticeUpdate
from ..schemas.users import UserCreate, UserResponse, UserUpdate
from ..services.billing import materialize_bill
from ..services.status import is_settled, stamp_for_complaint
from .provider import Storage


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _newest_first(rows):
    return sorted(rows, key=lambda r: (r.created_at, r.id), reverse=True)


def _copy(entity):
    return entity.model_copy(deep=True) if entity is not None else None


def _copies(rows):
    return [r.model_copy(deep=True) for r in rows]


class MemoryStorage(Storage):
    name = "memory"

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.users: Dict[int, UserResponse] = {}
        self.bills: Dict[int, BillResponse] = {}
        self.bill_items: Dict[int, BillItemResponse] = {}
        self.complaints: Dict[int, ComplaintResponse] = {}
        self.notices: Dict[int, NoticeResponse] = {}
        self.activities: Dict[int, ActivityResponse] = {}
        self.billing_fields: Dict[int, BillingFieldResponse] = {}
        self._ids = {name: itertools.count(1) for name in (
            "users", "bills", "bill_items", "complaints", "notices", "activities", "billing_fields",
        )}

    def _next_id(self, table: str) -> int:
        return next(self._ids[table])

    # ----- Users -----
    def get_user(self, user_id: int) -> Optional[UserResponse]:
        return _copy(self.users.get(user_id))

    def get_user_by_phone(self, phone_number: str) -> Optional[UserResponse]:
        return _copy(next((u for u in self.users.values() if u.phone_number == phone_number), None))

    def create_user(self, data: UserCreate) -> UserResponse:
        if self.get_user_by_phone(data.phone_number):
            raise DuplicatePhoneError()
        user = UserResponse(id=self._next_id("users"), created_at=_now(), **data.model_dump())
        self.users[user.id] = user
        return user

    def update_user(self, user_id: int, data: UserUpdate) -> Optional[UserResponse]:
        user = self.users.get(user_id)
        if not user:
            return None
        updates = data.model_dump(exclude_unset=True, exclude_none=True)
        phone = updates.get("phone_number")
        if phone and phone != user.phone_number and self.get_user_by_phone(phone):
            raise DuplicatePhoneError()
        user = user.model_copy(update=updates)
        self.users[user_id] = user
        return user

    def get_users(self) -> List[UserResponse]:
        return _copies(self.users.values())

    def get_all_residents(self) -> List[UserResponse]:
        return _copies(u for u in self.users.values() if u.is_active)

    # ----- Bills -----
    def get_bill(self, bill_id: int) -> Optional[BillResponse]:
        return _copy(self.bills.get(bill_id))

    def get_bills(self) -> List[BillResponse]:
        return _copies(self.bills.values())

    def get_bills_by_flat(self, flat_number: str) -> List[BillResponse]:
        return _copies(b for b in self.bills.values() if b.flat_number == flat_number)

    def get_bills_by_month(self, month: str) -> List[BillResponse]:
        return _copies(b for b in self.bills.values() if b.month == month)

    def get_bills_by_status(self, status: str) -> List[BillResponse]:
        return _copies(b for b in self.bills.values() if b.status == status)

    def get_pending_bills(self) -> List[BillResponse]:
        return _copies(b for b in self.bills.values() if not is_settled(b.status))

    def create_bill(self, data: BillCreate) -> BillResponse:
        fields = materialize_bill(data, rate=self.water_rate, due_day=self.due_day)
        bill = BillResponse(id=self._next_id("bills"), created_at=_now(), **fields)
        self.bills[bill.id] = bill
        for item in data.items:
            self.create_bill_item(BillItemCreate(bill_id=bill.id, **item.model_dump()))
        return bill

    def update_bill_status(self, bill_id: int, status: str, paid_at: Optional[datetime] = None) -> Optional[BillResponse]:
        bill = self.bills.get(bill_id)
        if not bill:
            return None
        bill = bill.model_copy(update={"status": status, "paid_at": paid_at})
        self.bills[bill_id] = bill
        return bill

    # ----- Bill items -----
    def get_bill_items(self, bill_id: int) -> List[BillItemResponse]:
        return _copies(i for i in self.bill_items.values() if i.bill_id == bill_id)

    def create_bill_item(self, data: BillItemCreate) -> BillItemResponse:
        item = BillItemResponse(id=self._next_id("bill_items"), **data.model_dump())
        self.bill_items[item.id] = item
        return item

    # ----- Complaints -----
    def get_complaint(self, complaint_id: int) -> Optional[ComplaintResponse]:
        return _copy(self.complaints.get(complaint_id))

    def get_complaints_by_resident(self, resident_id: int) -> List[ComplaintResponse]:
        return _copies(_newest_first(c for c in self.complaints.values() if c.resident_id == resident_id))

    def get_all_complaints(self) -> List[ComplaintResponse]:
        return _copies(_newest_first(self.complaints.values()))

    def create_complaint(self, data: ComplaintCreate) -> ComplaintResponse:
        now = _now()
        complaint = ComplaintResponse(
            id=self._next_id("complaints"),
            created_at=now,
            resolved_at=stamp_for_complaint(data.status, now),
            **data.model_dump(),
        )
        self.complaints[complaint.id] = complaint
        return complaint

    def update_complaint(self, complaint_id: int, data: ComplaintUpdate) -> Optional[ComplaintResponse]:
        complaint = self.complaints.get(complaint_id)
        if not complaint:
            return None
        updates = data.model_dump(exclude_unset=True, exclude_none=True)
        if "status" in updates and updates["status"] != complaint.status:
            updates["resolved_at"] = stamp_for_complaint(updates["status"], _now())
        complaint = complaint.model_copy(update=updates)
        self.complaints[complaint_id] = complaint
        return complaint

    def update_complaint_status(self, complaint_id: int, status: str, resolved_at: Optional[datetime] = None) -> Optional[ComplaintResponse]:
        complaint = self.complaints.get(complaint_id)
        if not complaint:
            return None
        complaint = complaint.model_copy(update={"status": status, "resolved_at": resolved_at})
        self.complaints[complaint_id] = complaint
        return complaint

    # ----- Notices -----
    def get_notice(self, notice_id: int) -> Optional[NoticeResponse]:
        return _copy(self.notices.get(notice_id))

    def get_all_notices(self) -> List[NoticeResponse]:
        return _copies(_newest_first(self.notices.values()))

    def create_notice(self, data: NoticeCreate) -> NoticeResponse:
        notice = NoticeResponse(id=self._next_id("notices"), created_at=_now(), **data.model_dump())
        self.notices[notice.id] = notice
        return notice

    def update_notice(self, notice_id: int, data: NoticeUpdate) -> Optional[NoticeResponse]:
        notice = self.notices.get(notice_id)
        if not notice:
            return None
        notice = notice.model_copy(update=data.model_dump(exclude_unset=True, exclude_none=True))
        self.notices[notice_id] = notice
        return notice

    def delete_notice(self, notice_id: int) -> bool:
        return self.notices.pop(notice_id, None) is not None

    # ----- Activities -----
    def get_recent_activities(self, limit: int = 10) -> List[ActivityResponse]:
        return _copies(_newest_first(self.activities.values())[:limit])

    def create_activity(self, data: ActivityCreate) -> ActivityResponse:
        activity = ActivityResponse(id=self._next_id("activities"), created_at=_now(), **data.model_dump())
        self.activities[activity.id] = activity
        return activity

    # ----- Billing fields -----
    def get_billing_fields(self) -> List[BillingFieldResponse]:
        return _copies(sorted(self.billing_fields.values(), key=lambda f: (f.sort_order, f.id)))

    def get_billing_field(self, field_id: int) -> Optional[BillingFieldResponse]:
        return _copy(self.billing_fields.get(field_id))

    def create_billing_field(self, data: BillingFieldCreate) -> BillingFieldResponse:
        field = BillingFieldResponse(id=self._next_id("billing_fields"), created_at=_now(), **data.model_dump())
        self.billing_fields[field.id] = field
        return field

    def update_billing_field(self, field_id: int, data: BillingFieldUpdate) -> Optional[BillingFieldResponse]:
        field = self.billing_fields.get(field_id)
        if not field:
            return None
        field = field.model_copy(update=data.model_dump(exclude_unset=True, exclude_none=True))
        self.billing_fields[field_id] = field
        return field

    def delete_billing_field(self, field_id: int) -> bool:
        if self.billing_fields.pop(field_id, None) is None:
            return False
        # Mirror ON DELETE SET NULL on bill items
        for item_id, item in list(self.bill_items.items()):
            if item.billing_field_id == field_id:
                self.bill_items[item_id] = item.model_copy(update={"billing_field_id": None})
        return True
