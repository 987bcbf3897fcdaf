from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    String,
    DateTime,
    Boolean,
    ForeignKey,
    Integer,
    Numeric,
    Text,
    Index,
)
from sqlalchemy.orm import relationship, Mapped, mapped_column

from ..db import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


MONEY = Numeric(10, 2)


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    phone_number: Mapped[str] = mapped_column(String(15), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    flat_number: Mapped[str] = mapped_column(String(10), nullable=False)
    tower: Mapped[Optional[str]] = mapped_column(String(5))
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="resident")  # admin|resident|watchman
    resident_type: Mapped[Optional[str]] = mapped_column(String(20))  # owner|tenant
    flat_status: Mapped[Optional[str]] = mapped_column(String(20))  # occupied|vacant
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)


class Bill(Base):
    __tablename__ = "bills"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    flat_number: Mapped[str] = mapped_column(String(10), nullable=False)
    # Weak reference: bills survive resident changes
    resident_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id"))
    month: Mapped[str] = mapped_column(String(7), nullable=False)  # YYYY-MM
    previous_reading: Mapped[Optional[int]] = mapped_column(Integer)
    current_reading: Mapped[Optional[int]] = mapped_column(Integer)
    water_usage: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    water_charges: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    maintenance_charges: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    electricity_charges: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    other_charges: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    present_dues: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    total_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    due_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)

    items = relationship("BillItem", back_populates="bill", cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (
        Index("idx_bills_month", "month"),
        Index("idx_bills_flat_month", "flat_number", "month"),
    )


class BillingField(Base):
    __tablename__ = "billing_fields"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)  # fixed|variable|calculated
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    default_value: Mapped[Optional[Decimal]] = mapped_column(MONEY)
    rate: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 4))
    unit: Mapped[Optional[str]] = mapped_column(String(20))
    description: Mapped[Optional[str]] = mapped_column(Text)
    formula: Mapped[Optional[str]] = mapped_column(Text)  # descriptive only, never evaluated
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)


class BillItem(Base):
    __tablename__ = "bill_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    bill_id: Mapped[int] = mapped_column(Integer, ForeignKey("bills.id", ondelete="CASCADE"), nullable=False, index=True)
    billing_field_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("billing_fields.id", ondelete="SET NULL"))
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)

    bill = relationship("Bill", back_populates="items")


class Complaint(Base):
    __tablename__ = "complaints"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    resident_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    flat_number: Mapped[str] = mapped_column(String(10), nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String(50))
    subject: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    photo_url: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="open")  # open|in_progress|resolved
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default="medium")  # low|medium|high
    assigned_to: Mapped[Optional[str]] = mapped_column(String(100))
    internal_notes: Mapped[Optional[str]] = mapped_column(Text)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)


class Notice(Base):
    __tablename__ = "notices"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    admin_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    is_important: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)


class Activity(Base):
    __tablename__ = "activities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    type: Mapped[str] = mapped_column(String(50), nullable=False)  # bill_generated|payment_received|complaint_submitted|...
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    user_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id"))
    # Opaque JSON string
    metadata_json: Mapped[Optional[str]] = mapped_column("metadata", Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
