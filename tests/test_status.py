from datetime import datetime, timezone

import pytest

from societyhub.errors import InvalidTransitionError
from societyhub.schemas.bills import BillStatus
from societyhub.services.status import (
    check_bill_transition,
    check_complaint_transition,
    is_settled,
    stamp_for_bill,
    stamp_for_complaint,
)


NOW = datetime(2024, 12, 20, 10, 30, tzinfo=timezone.utc)


def test_transitions_unchecked_by_default():
    check_bill_transition("paid", "pending")
    check_complaint_transition("resolved", "in_progress")


@pytest.mark.parametrize("current,target", [
    ("pending", "paid"),
    ("unpaid", "overdue"),
    ("overdue", "partially_cleared"),
    ("partially_cleared", "paid"),
    ("paid", "unpaid"),
    ("paid", "paid"),
])
def test_strict_bill_transitions_allowed(current, target):
    check_bill_transition(current, target, strict=True)


@pytest.mark.parametrize("current,target", [
    ("paid", "pending"),
    ("paid", "overdue"),
    ("partially_cleared", "pending"),
])
def test_strict_bill_transitions_rejected(current, target):
    with pytest.raises(InvalidTransitionError) as exc:
        check_bill_transition(current, target, strict=True)
    assert exc.value.status_code == 409
    assert exc.value.message == f"Cannot move from {current} to {target}"


def test_strict_complaint_transitions():
    check_complaint_transition("open", "in_progress", strict=True)
    check_complaint_transition("resolved", "open", strict=True)
    with pytest.raises(InvalidTransitionError):
        check_complaint_transition("resolved", "in_progress", strict=True)


def test_strict_mode_accepts_enum_members():
    check_bill_transition(BillStatus.pending, BillStatus.paid, strict=True)


def test_stamps():
    assert stamp_for_bill("paid", NOW) == NOW
    assert stamp_for_bill(BillStatus.paid, NOW) == NOW
    assert stamp_for_bill("overdue", NOW) is None
    assert stamp_for_complaint("resolved", NOW) == NOW
    assert stamp_for_complaint("in_progress", NOW) is None


def test_only_paid_is_settled():
    assert is_settled("paid")
    for status in ("pending", "unpaid", "overdue", "partially_cleared"):
        assert not is_settled(status)
