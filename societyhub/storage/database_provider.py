"""
Relational storage provider.
Every call opens its own session from the factory and commits before
returning, so no ORM state leaks between requests.
"""
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from ..errors import DuplicatePhoneError
from ..models.models import Activity, Bill, BillingField, BillItem, Complaint, Notice, User
from ..schemas.activities import ActivityCreate, ActivityResponse
from ..schemas.billing_fields import BillingFieldCreate, BillingFieldResponse, BillingFieldUpdate
from ..schemas.bills import BillCreate, BillItemCreate, BillItemResponse, BillResponse, BillStatus
from ..schemas.complaints import ComplaintCreate, ComplaintResponse, ComplaintUpdate
from ..schemas.notices import NoticeCreate, NoticeResponse, NoticeUpdate
from ..schemas.users import UserCreate, UserResponse, UserUpdate
from ..services.billing import materialize_bill
from ..services.status import stamp_for_complaint
from .provider import Storage


def _activity(row: Activity) -> ActivityResponse:
    # ``metadata`` is reserved on declarative classes, so the attribute is renamed
    return ActivityResponse(
        id=row.id,
        type=row.type,
        title=row.title,
        description=row.description,
        user_id=row.user_id,
        metadata=row.metadata_json,
        created_at=row.created_at,
    )


class DatabaseStorage(Storage):
    name = "database"

    def __init__(self, session_factory: sessionmaker, **kwargs):
        super().__init__(**kwargs)
        self.session_factory = session_factory

    @contextmanager
    def session(self) -> Iterator[Session]:
        db = self.session_factory()
        try:
            yield db
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    # ----- Users -----
    def get_user(self, user_id: int) -> Optional[UserResponse]:
        with self.session() as db:
            row = db.query(User).filter(User.id == user_id).first()
            return UserResponse.model_validate(row) if row else None

    def get_user_by_phone(self, phone_number: str) -> Optional[UserResponse]:
        with self.session() as db:
            row = db.query(User).filter(User.phone_number == phone_number).first()
            return UserResponse.model_validate(row) if row else None

    def create_user(self, data: UserCreate) -> UserResponse:
        with self.session() as db:
            row = User(**data.model_dump())
            db.add(row)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                raise DuplicatePhoneError()
            db.refresh(row)
            return UserResponse.model_validate(row)

    def update_user(self, user_id: int, data: UserUpdate) -> Optional[UserResponse]:
        with self.session() as db:
            row = db.query(User).filter(User.id == user_id).first()
            if not row:
                return None
            for key, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
                setattr(row, key, value)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                raise DuplicatePhoneError()
            db.refresh(row)
            return UserResponse.model_validate(row)

    def get_users(self) -> List[UserResponse]:
        with self.session() as db:
            rows = db.query(User).order_by(User.id.asc()).all()
            return [UserResponse.model_validate(r) for r in rows]

    def get_all_residents(self) -> List[UserResponse]:
        with self.session() as db:
            rows = db.query(User).filter(User.is_active.is_(True)).order_by(User.id.asc()).all()
            return [UserResponse.model_validate(r) for r in rows]

    # ----- Bills -----
    def _bills(self, *criteria) -> List[BillResponse]:
        with self.session() as db:
            rows = db.query(Bill).filter(*criteria).order_by(Bill.id.asc()).all()
            return [BillResponse.model_validate(r) for r in rows]

    def get_bill(self, bill_id: int) -> Optional[BillResponse]:
        with self.session() as db:
            row = db.query(Bill).filter(Bill.id == bill_id).first()
            return BillResponse.model_validate(row) if row else None

    def get_bills(self) -> List[BillResponse]:
        return self._bills()

    def get_bills_by_flat(self, flat_number: str) -> List[BillResponse]:
        return self._bills(Bill.flat_number == flat_number)

    def get_bills_by_month(self, month: str) -> List[BillResponse]:
        return self._bills(Bill.month == month)

    def get_bills_by_status(self, status: str) -> List[BillResponse]:
        return self._bills(Bill.status == status)

    def get_pending_bills(self) -> List[BillResponse]:
        return self._bills(Bill.status != BillStatus.paid.value)

    def create_bill(self, data: BillCreate) -> BillResponse:
        fields = materialize_bill(data, rate=self.water_rate, due_day=self.due_day)
        with self.session() as db:
            row = Bill(**fields)
            row.items = [BillItem(**item.model_dump()) for item in data.items]
            db.add(row)
            db.commit()
            db.refresh(row)
            return BillResponse.model_validate(row)

    def update_bill_status(self, bill_id: int, status: str, paid_at: Optional[datetime] = None) -> Optional[BillResponse]:
        with self.session() as db:
            row = db.query(Bill).filter(Bill.id == bill_id).first()
            if not row:
                return None
            row.status = status
            row.paid_at = paid_at
            db.commit()
            db.refresh(row)
            return BillResponse.model_validate(row)

    # ----- Bill items -----
    def get_bill_items(self, bill_id: int) -> List[BillItemResponse]:
        with self.session() as db:
            rows = db.query(BillItem).filter(BillItem.bill_id == bill_id).order_by(BillItem.id.asc()).all()
            return [BillItemResponse.model_validate(r) for r in rows]

    def create_bill_item(self, data: BillItemCreate) -> BillItemResponse:
        with self.session() as db:
            row = BillItem(**data.model_dump())
            db.add(row)
            db.commit()
            db.refresh(row)
            return BillItemResponse.model_validate(row)

    # ----- Complaints -----
    def get_complaint(self, complaint_id: int) -> Optional[ComplaintResponse]:
        with self.session() as db:
            row = db.query(Complaint).filter(Complaint.id == complaint_id).first()
            return ComplaintResponse.model_validate(row) if row else None

    def get_complaints_by_resident(self, resident_id: int) -> List[ComplaintResponse]:
        with self.session() as db:
            rows = (
                db.query(Complaint)
                .filter(Complaint.resident_id == resident_id)
                .order_by(Complaint.created_at.desc(), Complaint.id.desc())
                .all()
            )
            return [ComplaintResponse.model_validate(r) for r in rows]

    def get_all_complaints(self) -> List[ComplaintResponse]:
        with self.session() as db:
            rows = db.query(Complaint).order_by(Complaint.created_at.desc(), Complaint.id.desc()).all()
            return [ComplaintResponse.model_validate(r) for r in rows]

    def create_complaint(self, data: ComplaintCreate) -> ComplaintResponse:
        with self.session() as db:
            now = datetime.now(timezone.utc)
            row = Complaint(created_at=now, resolved_at=stamp_for_complaint(data.status, now), **data.model_dump())
            db.add(row)
            db.commit()
            db.refresh(row)
            return ComplaintResponse.model_validate(row)

    def update_complaint(self, complaint_id: int, data: ComplaintUpdate) -> Optional[ComplaintResponse]:
        with self.session() as db:
            row = db.query(Complaint).filter(Complaint.id == complaint_id).first()
            if not row:
                return None
            updates = data.model_dump(exclude_unset=True, exclude_none=True)
            if "status" in updates and updates["status"] != row.status:
                row.resolved_at = stamp_for_complaint(updates["status"], datetime.now(timezone.utc))
            for key, value in updates.items():
                setattr(row, key, value)
            db.commit()
            db.refresh(row)
            return ComplaintResponse.model_validate(row)

    def update_complaint_status(self, complaint_id: int, status: str, resolved_at: Optional[datetime] = None) -> Optional[ComplaintResponse]:
        with self.session() as db:
            row = db.query(Complaint).filter(Complaint.id == complaint_id).first()
            if not row:
                return None
            row.status = status
            row.resolved_at = resolved_at
            db.commit()
            db.refresh(row)
            return ComplaintResponse.model_validate(row)

    # ----- Notices -----
    def get_notice(self, notice_id: int) -> Optional[NoticeResponse]:
        with self.session() as db:
            row = db.query(Notice).filter(Notice.id == notice_id).first()
            return NoticeResponse.model_validate(row) if row else None

    def get_all_notices(self) -> List[NoticeResponse]:
        with self.session() as db:
            rows = db.query(Notice).order_by(Notice.created_at.desc(), Notice.id.desc()).all()
            return [NoticeResponse.model_validate(r) for r in rows]

    def create_notice(self, data: NoticeCreate) -> NoticeResponse:
        with self.session() as db:
            row = Notice(**data.model_dump())
            db.add(row)
            db.commit()
            db.refresh(row)
            return NoticeResponse.model_validate(row)

    def update_notice(self, notice_id: int, data: NoticeUpdate) -> Optional[NoticeResponse]:
        with self.session() as db:
            row = db.query(Notice).filter(Notice.id == notice_id).first()
            if not row:
                return None
            for key, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
                setattr(row, key, value)
            db.commit()
            db.refresh(row)
            return NoticeResponse.model_validate(row)

    def delete_notice(self, notice_id: int) -> bool:
        with self.session() as db:
            deleted = db.query(Notice).filter(Notice.id == notice_id).delete()
            db.commit()
            return deleted > 0

    # ----- Activities -----
    def get_recent_activities(self, limit: int = 10) -> List[ActivityResponse]:
        with self.session() as db:
            rows = db.query(Activity).order_by(Activity.created_at.desc(), Activity.id.desc()).limit(limit).all()
            return [_activity(r) for r in rows]

    def create_activity(self, data: ActivityCreate) -> ActivityResponse:
        with self.session() as db:
            payload = data.model_dump()
            row = Activity(metadata_json=payload.pop("metadata"), **payload)
            db.add(row)
            db.commit()
            db.refresh(row)
            return _activity(row)

    # ----- Billing fields -----
    def get_billing_fields(self) -> List[BillingFieldResponse]:
        with self.session() as db:
            rows = db.query(BillingField).order_by(BillingField.sort_order.asc(), BillingField.id.asc()).all()
            return [BillingFieldResponse.model_validate(r) for r in rows]

    def get_billing_field(self, field_id: int) -> Optional[BillingFieldResponse]:
        with self.session() as db:
            row = db.query(BillingField).filter(BillingField.id == field_id).first()
            return BillingFieldResponse.model_validate(row) if row else None

    def create_billing_field(self, data: BillingFieldCreate) -> BillingFieldResponse:
        with self.session() as db:
            row = BillingField(**data.model_dump())
            db.add(row)
            db.commit()
            db.refresh(row)
            return BillingFieldResponse.model_validate(row)

    def update_billing_field(self, field_id: int, data: BillingFieldUpdate) -> Optional[BillingFieldResponse]:
        with self.session() as db:
            row = db.query(BillingField).filter(BillingField.id == field_id).first()
            if not row:
                return None
            for key, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
                setattr(row, key, value)
            db.commit()
            db.refresh(row)
            return BillingFieldResponse.model_validate(row)

    def delete_billing_field(self, field_id: int) -> bool:
        with self.session() as db:
            row = db.query(BillingField).filter(BillingField.id == field_id).first()
            if not row:
                return False
            # SQLite does not enforce ON DELETE SET NULL unless foreign keys are switched on
            db.query(BillItem).filter(BillItem.billing_field_id == field_id).update({BillItem.billing_field_id: None})
            db.delete(row)
            db.commit()
            return True
