from decimal import Decimal

from .common import ApiModel


class DashboardStats(ApiModel):
    total_flats: int
    pending_dues: Decimal
    open_complaints: int
    total_complaints: int
    resolved_complaints: int
    paid_bills: int
    collected_amount: Decimal
