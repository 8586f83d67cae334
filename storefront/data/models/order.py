# storefront/data/models/order.py
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, Text
from sqlalchemy.orm import relationship

from storefront.data.database import Base
from storefront.domain.errors import IllegalStateTransition, ValidationError
from storefront.domain.statuses import NON_CANCELLABLE, OrderStatus


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    order_number = Column(String(32), nullable=False, unique=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)

    shipping_fee = Column(Integer, nullable=False, default=0)
    total_amount = Column(Integer, nullable=False, default=0)

    # shipping address
    recipient_name = Column(String(100), nullable=False)
    recipient_phone = Column(String(40), nullable=False)
    address = Column(String(500), nullable=False)

    status = Column(String(20), nullable=False, default=OrderStatus.PENDING.value, index=True)
    payment_method = Column(String(20), nullable=False)
    notes = Column(Text, nullable=False, default="")

    # payment reference, unique so a retried callback cannot insert a second order
    gateway_transaction_id = Column(String(100), nullable=True, unique=True)
    merchant_order_id = Column(String(100), nullable=True, unique=True)
    paid_amount = Column(Integer, nullable=True)
    pay_method = Column(String(40), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.position",
    )

    def recalculate_total(self) -> int:
        if not self.items:
            raise ValidationError("Order must contain at least one item", fields=["items"])
        items_total = sum(i.unit_price * i.quantity for i in self.items)
        self.total_amount = items_total + (self.shipping_fee or 0)
        return self.total_amount

    def update_status(self, new_status: str) -> None:
        """
        Overwrites the status with any known value. Forward-only ordering is
        not enforced; admins may move an order to any status.
        """
        try:
            status = OrderStatus(new_status)
        except ValueError:
            raise ValidationError(f"Unknown order status: {new_status}", fields=["status"])
        self.status = status.value

    def cancel(self) -> None:
        current = OrderStatus(self.status)
        if current in NON_CANCELLABLE:
            raise IllegalStateTransition(
                f"Order {self.order_number} is already {current.value} and cannot be cancelled"
            )
        #cancelling a cancelled order is a no-op
        self.status = OrderStatus.CANCELLED.value

    @property
    def has_payment_reference(self) -> bool:
        return bool(self.gateway_transaction_id or self.merchant_order_id)
