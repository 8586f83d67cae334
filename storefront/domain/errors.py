# storefront/domain/errors.py
"""
Error kinds raised by the order core.

The routers translate each of them into its own HTTP status, so callers can
tell a duplicate order apart from a failed payment or a bad request.
"""


class OrderError(Exception):
    code = "order_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_detail(self) -> dict:
        return {"code": self.code, "message": self.message}


class InvalidInput(OrderError):
    code = "invalid_input"


class ValidationError(OrderError):
    code = "validation_error"

    def __init__(self, message: str, fields: list[str] | None = None):
        super().__init__(message)
        self.fields = fields or []

    def to_detail(self) -> dict:
        return {**super().to_detail(), "fields": self.fields}


class EmptyCartError(OrderError):
    code = "empty_cart"

    def __init__(self, message: str = "Cart is empty"):
        super().__init__(message)


class ProductUnavailableError(OrderError):
    code = "product_unavailable"

    def __init__(self, product_id: int):
        super().__init__(f"Product {product_id} not found in catalog")
        self.product_id = product_id

    def to_detail(self) -> dict:
        return {**super().to_detail(), "product_id": self.product_id}


class DuplicateOrderError(OrderError):
    code = "duplicate_order"

    def __init__(self, existing_order_number: str, existing_order_id: int | None = None):
        super().__init__(f"Order already exists for this payment: {existing_order_number}")
        self.existing_order_number = existing_order_number
        self.existing_order_id = existing_order_id

    def to_detail(self) -> dict:
        return {
            **super().to_detail(),
            "existing_order": {
                "order_number": self.existing_order_number,
                "order_id": self.existing_order_id,
            },
        }


class PaymentVerificationFailed(OrderError):
    code = "payment_verification_failed"

    def __init__(self, reason: str, result=None):
        super().__init__(reason)
        self.result = result


class IllegalStateTransition(OrderError):
    code = "illegal_state_transition"


class NotFound(OrderError):
    code = "not_found"


class Forbidden(OrderError):
    code = "forbidden"


class CheckoutInProgressError(OrderError):
    code = "checkout_in_progress"


class ConcurrencyConflict(OrderError):
    code = "concurrency_conflict"
