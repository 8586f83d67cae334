# storefront/domain/statuses.py
from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    SHIPPING_START = "shipping_start"
    SHIPPING = "shipping"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


#once confirmed or further along the order can no longer be cancelled
NON_CANCELLABLE = frozenset(
    {
        OrderStatus.CONFIRMED,
        OrderStatus.PREPARING,
        OrderStatus.SHIPPING_START,
        OrderStatus.SHIPPING,
        OrderStatus.DELIVERED,
    }
)


class PaymentMethod(str, Enum):
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"


class VerificationPolicy(str, Enum):
    STRICT = "strict"
    PERMISSIVE_IF_UNCONFIGURED = "permissive-if-unconfigured"
