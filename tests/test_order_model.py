import pytest

from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.domain.errors import IllegalStateTransition, ValidationError
from storefront.domain.statuses import OrderStatus


def make_order(status="pending", items=None, shipping_fee=3000):
    return OrderModel(
        order_number="ORD-20250314-153022-0001",
        user_id=1,
        items=items if items is not None else [
            OrderItemModel(position=0, product_id=1, quantity=2, unit_price=10000),
        ],
        shipping_fee=shipping_fee,
        recipient_name="Kim Minji",
        recipient_phone="010-1234-5678",
        address="Seoul",
        status=status,
        payment_method="card",
    )


class TestCancel:
    def test_pending_order_can_be_cancelled(self):
        order = make_order("pending")
        order.cancel()
        assert order.status == "cancelled"

    @pytest.mark.parametrize(
        "status", ["confirmed", "preparing", "shipping_start", "shipping", "delivered"]
    )
    def test_cancel_rejected_after_confirmation(self, status):
        order = make_order(status)
        with pytest.raises(IllegalStateTransition):
            order.cancel()
        assert order.status == status

    def test_cancelling_cancelled_order_is_noop(self):
        order = make_order("cancelled")
        order.cancel()
        assert order.status == "cancelled"


class TestUpdateStatus:
    @pytest.mark.parametrize("status", [s.value for s in OrderStatus])
    def test_any_known_status_is_accepted(self, status):
        order = make_order("pending")
        order.update_status(status)
        assert order.status == status

    def test_backwards_move_is_allowed(self):
        order = make_order("delivered")
        order.update_status("pending")
        assert order.status == "pending"

    def test_unknown_status_rejected(self):
        order = make_order("pending")
        with pytest.raises(ValidationError):
            order.update_status("lost")
        assert order.status == "pending"


class TestRecalculateTotal:
    def test_total_includes_shipping(self):
        order = make_order(
            items=[
                OrderItemModel(position=0, product_id=1, quantity=2, unit_price=10000),
                OrderItemModel(position=1, product_id=2, quantity=1, unit_price=4500),
            ]
        )
        assert order.recalculate_total() == 27500
        assert order.total_amount == 27500

    def test_empty_items_rejected(self):
        order = make_order(items=[])
        with pytest.raises(ValidationError):
            order.recalculate_total()
