from datetime import datetime
from typing import List, Optional

from ..schemas.activities import ActivityCreate, ActivityResponse
from ..schemas.billing_fields import BillingFieldCreate, BillingFieldResponse, BillingFieldUpdate
from ..schemas.bills import BillCreate, BillItemCreate, BillItemResponse, BillResponse
from ..schemas.complaints import ComplaintCreate, ComplaintResponse, ComplaintUpdate
from ..schemas.notices import NoticeCreate, NoticeResponse, NoticeUpdate
from ..schemas.users import UserCreate, UserResponse, UserUpdate
from ..services.billing import DEFAULT_WATER_RATE


class Storage:
    """
    CRUD contract shared by every backend.

    Reads of a missing id return None; deletes of a missing id return False.
    Writes return the fully materialized entity.
    """

    name = "abstract"

    def __init__(self, water_rate=DEFAULT_WATER_RATE, due_day: int = 15):
        self.water_rate = water_rate
        self.due_day = due_day

    # ----- Users -----
    def get_user(self, user_id: int) -> Optional[UserResponse]:
        raise NotImplementedError

    def get_user_by_phone(self, phone_number: str) -> Optional[UserResponse]:
        raise NotImplementedError

    def create_user(self, data: UserCreate) -> UserResponse:
        raise NotImplementedError

    def update_user(self, user_id: int, data: UserUpdate) -> Optional[UserResponse]:
        raise NotImplementedError

    def get_users(self) -> List[UserResponse]:
        raise NotImplementedError

    def get_all_residents(self) -> List[UserResponse]:
        raise NotImplementedError

    # ----- Bills -----
    def get_bill(self, bill_id: int) -> Optional[BillResponse]:
        raise NotImplementedError

    def get_bills(self) -> List[BillResponse]:
        raise NotImplementedError

    def get_bills_by_flat(self, flat_number: str) -> List[BillResponse]:
        raise NotImplementedError

    def get_bills_by_month(self, month: str) -> List[BillResponse]:
        raise NotImplementedError

    def get_bills_by_status(self, status: str) -> List[BillResponse]:
        raise NotImplementedError

    def get_pending_bills(self) -> List[BillResponse]:
        raise NotImplementedError

    def create_bill(self, data: BillCreate) -> BillResponse:
        raise NotImplementedError

    def update_bill_status(self, bill_id: int, status: str, paid_at: Optional[datetime] = None) -> Optional[BillResponse]:
        raise NotImplementedError

    # ----- Bill items -----
    def get_bill_items(self, bill_id: int) -> List[BillItemResponse]:
        raise NotImplementedError

    def create_bill_item(self, data: BillItemCreate) -> BillItemResponse:
        raise NotImplementedError

    # ----- Complaints -----
    def get_complaint(self, complaint_id: int) -> Optional[ComplaintResponse]:
        raise NotImplementedError

    def get_complaints_by_resident(self, resident_id: int) -> List[ComplaintResponse]:
        raise NotImplementedError

    def get_all_complaints(self) -> List[ComplaintResponse]:
        raise NotImplementedError

    def create_complaint(self, data: ComplaintCreate) -> ComplaintResponse:
        raise NotImplementedError

    def update_complaint(self, complaint_id: int, data: ComplaintUpdate) -> Optional[ComplaintResponse]:
        raise NotImplementedError

    def update_complaint_status(self, complaint_id: int, status: str, resolved_at: Optional[datetime] = None) -> Optional[ComplaintResponse]:
        raise NotImplementedError

    # ----- Notices -----
    def get_notice(self, notice_id: int) -> Optional[NoticeResponse]:
        raise NotImplementedError

    def get_all_notices(self) -> List[NoticeResponse]:
        raise NotImplementedError

    def create_notice(self, data: NoticeCreate) -> NoticeResponse:
        raise NotImplementedError

    def update_notice(self, notice_id: int, data: NoticeUpdate) -> Optional[NoticeResponse]:
        raise NotImplementedError

    def delete_notice(self, notice_id: int) -> bool:
        raise NotImplementedError

    # ----- Activities -----
    def get_recent_activities(self, limit: int = 10) -> List[ActivityResponse]:
        raise NotImplementedError

    def create_activity(self, data: ActivityCreate) -> ActivityResponse:
        raise NotImplementedError

    # ----- Billing fields -----
    def get_billing_fields(self) -> List[BillingFieldResponse]:
        raise NotImplementedError

    def get_billing_field(self, field_id: int) -> Optional[BillingFieldResponse]:
        raise NotImplementedError

    def create_billing_field(self, data: BillingFieldCreate) -> BillingFieldResponse:
        raise NotImplementedError

    def update_billing_field(self, field_id: int, data: BillingFieldUpdate) -> Optional[BillingFieldResponse]:
        raise NotImplementedError

    def delete_billing_field(self, field_id: int) -> bool:
        raise NotImplementedError
