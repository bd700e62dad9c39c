from enum import Enum


class PaymentStatus(str, Enum):
    pending = "pending"
    late = "late"
    partially_paid = "partially_paid"
    paid = "paid"
    cancelled = "cancelled"
