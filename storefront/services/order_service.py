# storefront/services/order_service.py
from dataclasses import dataclass
from typing import Dict, Any

from redis.exceptions import RedisError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.domain.errors import (
    CheckoutInProgressError,
    DuplicateOrderError,
    EmptyCartError,
    PaymentVerificationFailed,
    ProductUnavailableError,
    ValidationError,
)
from storefront.domain.order_number import OrderNumberGenerator
from storefront.domain.pricing import PriceBreakdown, calculate_totals
from storefront.domain.schemas import PaymentReferenceIn, ShippingAddressIn
from storefront.domain.statuses import OrderStatus, PaymentMethod
from storefront.repos.order_repo import OrderRepo
from storefront.services.cart_service import CartService
from storefront.services.duplicate_guard import DuplicateOrderGuard
from storefront.services.lock_service import LockService
from storefront.services.notification_service import NotificationService
from storefront.services.payment_verifier import (
    AmountMismatch,
    GatewayUnavailable,
    NotPaid,
    PaymentVerifier,
    Verified,
    VerificationResult,
)
from storefront.services.product_client import ProductClient
from storefront.utils.settings import CHECKOUT_LOCK_TTL_SECONDS, ORDER_NUMBER_MAX_ATTEMPTS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SnapshotLine:
    """A cart line priced at checkout time."""

    product_id: int
    quantity: int
    unit_price: int


def order_to_dict(order: OrderModel) -> Dict[str, Any]:
    payment_reference = None
    if order.has_payment_reference:
        payment_reference = {
            "gateway_transaction_id": order.gateway_transaction_id,
            "merchant_order_id": order.merchant_order_id,
            "paid_amount": order.paid_amount,
            "pay_method": order.pay_method,
        }

    return {
        "id": order.id,
        "order_number": order.order_number,
        "user_id": order.user_id,
        "items": [
            {
                "product_id": i.product_id,
                "quantity": i.quantity,
                "unit_price": i.unit_price,
            }
            for i in order.items
        ],
        "shipping_fee": order.shipping_fee,
        "total_amount": order.total_amount,
        "shipping_address": {
            "recipient_name": order.recipient_name,
            "recipient_phone": order.recipient_phone,
            "address": order.address,
        },
        "status": order.status,
        "payment_method": order.payment_method,
        "payment_reference": payment_reference,
        "notes": order.notes or "",
        "created_at": order.created_at,
        "updated_at": order.updated_at,
    }


class OrderService:
    """
    Turns the user's cart into an order.

    1. validates the shipping address and payment method
    2. snapshots the cart with current catalog prices
    3. computes totals
    4. for gateway payments: duplicate check + payment verification
    5. persists the order (confirmed if paid, pending otherwise)
    6. clears the cart and sends a notification, failures there are only logged

    Nothing is written before step 5, so any earlier failure leaves no order
    and an untouched cart.
    """

    def __init__(
        self,
        db: Session,
        product_client: ProductClient,
        verifier: PaymentVerifier,
        lock_service: LockService,
        notification_service: NotificationService | None = None,
        number_generator: OrderNumberGenerator | None = None,
        max_number_attempts: int = ORDER_NUMBER_MAX_ATTEMPTS,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.cart_service = CartService(db, product_client)
        self.product_client = product_client
        self.guard = DuplicateOrderGuard(db)
        self.verifier = verifier
        self.lock_service = lock_service
        self.notification_service = notification_service or NotificationService()
        self.number_generator = number_generator or OrderNumberGenerator()
        self.max_number_attempts = max_number_attempts

    # query
    def checkout_summary(self, user_id: int) -> Dict[str, Any]:
        """The figure the client charges at the gateway."""
        lines = self._snapshot_cart(user_id)
        totals = self._totals(lines)
        return {
            "items": [
                {"product_id": l.product_id, "quantity": l.quantity, "unit_price": l.unit_price}
                for l in lines
            ],
            "subtotal": totals.subtotal,
            "shipping_fee": totals.shipping_fee,
            "grand_total": totals.grand_total,
        }

    # command
    def create_order(
        self,
        user_id: int,
        shipping_address: ShippingAddressIn | None,
        payment_method: str | None,
        notes: str | None = None,
        payment: PaymentReferenceIn | None = None,
    ) -> OrderModel:
        method = self._validate(shipping_address, payment_method)

        try:
            lines = self._snapshot_cart(user_id)
        except EmptyCartError:
            #a callback retried after success finds the cart already cleared
            if payment and (payment.merchant_order_id or payment.gateway_transaction_id):
                self._raise_if_duplicate(payment)
            raise
        totals = self._totals(lines)
        logger.info(
            f"Checkout for user {user_id}: subtotal {totals.subtotal}, "
            f"shipping {totals.shipping_fee}, total {totals.grand_total}"
        )

        transaction_id = payment.gateway_transaction_id if payment else None

        if transaction_id:
            owner = f"user:{user_id}"
            locked = self.lock_service.acquire_checkout_lock(
                transaction_id, owner, ttl=CHECKOUT_LOCK_TTL_SECONDS
            )
            if not locked:
                raise CheckoutInProgressError(
                    f"Payment {transaction_id} is already being processed"
                )
            try:
                verified = self._check_payment(payment, totals.grand_total)
                order = self._persist(
                    user_id, lines, totals, shipping_address, method, notes, payment, verified
                )
            finally:
                self._release_lock(transaction_id, owner)
        else:
            order = self._persist(
                user_id, lines, totals, shipping_address, method, notes, payment, False
            )

        logger.info(f"Order {order.order_number} created for user {user_id} with status {order.status}")

        self._after_commit(user_id, order)
        return order

    def _validate(self, shipping_address: ShippingAddressIn | None, payment_method: str | None) -> PaymentMethod:
        missing = []
        for field in ("recipient_name", "recipient_phone", "address"):
            value = getattr(shipping_address, field, None) if shipping_address else None
            if not value or not value.strip():
                missing.append(f"shipping_address.{field}")
        if not payment_method:
            missing.append("payment_method")

        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}", fields=missing)

        try:
            return PaymentMethod(payment_method)
        except ValueError:
            raise ValidationError(f"Unknown payment method: {payment_method}", fields=["payment_method"])

    def _snapshot_cart(self, user_id: int) -> list[SnapshotLine]:
        cart = self.cart_service.find_cart(user_id)
        items = self.cart_service.list_items(cart.id) if cart else []
        if not items:
            raise EmptyCartError()

        #current catalog price, not whatever the cart last displayed
        lines = []
        for item in items:
            price = self.product_client.get_price(item.product_id)
            if price is None:
                raise ProductUnavailableError(item.product_id)
            lines.append(SnapshotLine(item.product_id, item.quantity, price))
        return lines

    @staticmethod
    def _totals(lines: list[SnapshotLine]) -> PriceBreakdown:
        return calculate_totals((l.unit_price, l.quantity) for l in lines)

    def _raise_if_duplicate(self, payment: PaymentReferenceIn) -> None:
        dup = self.guard.check_duplicate(
            merchant_order_id=payment.merchant_order_id,
            gateway_transaction_id=payment.gateway_transaction_id,
        )
        if dup.is_duplicate:
            raise DuplicateOrderError(dup.existing_order.order_number, dup.existing_order.id)

    def _check_payment(self, payment: PaymentReferenceIn, grand_total: int) -> bool:
        self._raise_if_duplicate(payment)

        result = self.verifier.verify(payment.gateway_transaction_id, grand_total)

        if isinstance(result, Verified):
            return True

        if self.verifier.allows_soft_pass(result):
            logger.warning(
                f"Payment {payment.gateway_transaction_id} NOT verified ({result.reason}), "
                f"accepting it because the gateway is not configured"
            )
            return True

        raise PaymentVerificationFailed(self._failure_reason(result), result)

    @staticmethod
    def _failure_reason(result: VerificationResult) -> str:
        if isinstance(result, AmountMismatch):
            return f"Paid amount {result.actual} does not match order total {result.expected}"
        if isinstance(result, NotPaid):
            return f"Payment is not completed (gateway status: {result.gateway_status})"
        if isinstance(result, GatewayUnavailable):
            return f"Payment gateway unavailable: {result.reason}"
        return f"Payment verification error: {result.detail}"

    def _persist(
        self,
        user_id: int,
        lines: list[SnapshotLine],
        totals: PriceBreakdown,
        shipping_address: ShippingAddressIn,
        method: PaymentMethod,
        notes: str | None,
        payment: PaymentReferenceIn | None,
        verified: bool,
    ) -> OrderModel:
        status = OrderStatus.CONFIRMED if verified else OrderStatus.PENDING

        for attempt in range(1, self.max_number_attempts + 1):
            order_number = self.number_generator.generate()
            if self.repo.order_number_exists(order_number):
                logger.warning(f"Order number {order_number} taken, drawing a new one (attempt {attempt})")
                continue

            order = OrderModel(
                order_number=order_number,
                user_id=user_id,
                items=[
                    OrderItemModel(
                        position=position,
                        product_id=l.product_id,
                        quantity=l.quantity,
                        unit_price=l.unit_price,
                    )
                    for position, l in enumerate(lines)
                ],
                shipping_fee=totals.shipping_fee,
                recipient_name=shipping_address.recipient_name.strip(),
                recipient_phone=shipping_address.recipient_phone.strip(),
                address=shipping_address.address.strip(),
                status=status.value,
                payment_method=method.value,
                notes=(notes or "").strip(),
            )
            if payment:
                order.gateway_transaction_id = payment.gateway_transaction_id
                order.merchant_order_id = payment.merchant_order_id
                order.paid_amount = payment.paid_amount
                order.pay_method = payment.pay_method

            #the order recomputes its own total; it has to match what was charged
            if order.recalculate_total() != totals.grand_total:
                raise RuntimeError(
                    f"Order total {order.total_amount} diverges from checkout total {totals.grand_total}"
                )

            try:
                return self.repo.create_order(order)
            except IntegrityError:
                #unique constraints are the final word on duplicates
                if payment:
                    self._raise_if_duplicate(payment)
                if not self.repo.order_number_exists(order_number):
                    raise
                logger.warning(f"Order number {order_number} collided on insert (attempt {attempt})")

        raise RuntimeError(f"Could not allocate a unique order number after {self.max_number_attempts} attempts")

    def _release_lock(self, transaction_id: str, owner: str) -> None:
        try:
            self.lock_service.release_checkout_lock(transaction_id, owner)
        except RedisError as e:
            #the lock expires on its own
            logger.warning(f"Failed to release checkout lock for {transaction_id}: {e}")

    def _after_commit(self, user_id: int, order: OrderModel) -> None:
        #the order is authoritative now, a stale cart is only cosmetic
        try:
            self.cart_service.clear_cart(user_id)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to clear cart of user {user_id} after order {order.order_number}: {e}")

        try:
            self.notification_service.send_order_notification(user_id, order.order_number, order.status)
        except Exception as e:
            logger.error(f"Failed to dispatch notification for order {order.order_number}: {e}")
