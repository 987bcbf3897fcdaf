"""
Bill and complaint status rules.

Transitions are unchecked by default: any known status may follow any
other and the latest write wins. With strict mode on, the tables below are
enforced.
"""
from datetime import datetime
from typing import Dict, FrozenSet, Optional

from ..errors import InvalidTransitionError
from ..schemas.bills import BillStatus
from ..schemas.complaints import ComplaintStatus


_OPEN_BILL = frozenset({"pending", "unpaid", "overdue", "partially_cleared", "paid"})

BILL_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    BillStatus.pending.value: _OPEN_BILL,
    BillStatus.unpaid.value: _OPEN_BILL,
    BillStatus.overdue.value: _OPEN_BILL,
    BillStatus.partially_cleared.value: frozenset({"partially_cleared", "paid", "overdue"}),
    # Reversal of a wrongly recorded payment
    BillStatus.paid.value: frozenset({"unpaid"}),
}

COMPLAINT_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    ComplaintStatus.open.value: frozenset({"in_progress", "resolved"}),
    ComplaintStatus.in_progress.value: frozenset({"open", "resolved"}),
    ComplaintStatus.resolved.value: frozenset({"open"}),
}


def _value(status) -> str:
    return status.value if hasattr(status, "value") else str(status)


def check_transition(table: Dict[str, FrozenSet[str]], current, target, strict: bool) -> None:
    current, target = _value(current), _value(target)
    if not strict or current == target:
        return
    allowed = table.get(current)
    # Statuses outside the table (legacy rows) are never blocked
    if allowed is not None and target not in allowed:
        raise InvalidTransitionError(current=current, target=target)


def check_bill_transition(current, target, strict: bool = False) -> None:
    check_transition(BILL_TRANSITIONS, current, target, strict)


def check_complaint_transition(current, target, strict: bool = False) -> None:
    check_transition(COMPLAINT_TRANSITIONS, current, target, strict)


def stamp_for_bill(status, now: datetime) -> Optional[datetime]:
    """paidAt for a bill entering ``status``."""
    return now if _value(status) == BillStatus.paid.value else None


def stamp_for_complaint(status, now: datetime) -> Optional[datetime]:
    """resolvedAt for a complaint entering ``status``."""
    return now if _value(status) == ComplaintStatus.resolved.value else None


def is_settled(status) -> bool:
    return _value(status) == BillStatus.paid.value
