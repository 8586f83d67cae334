# storefront/services/duplicate_guard.py
from dataclasses import dataclass

from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.repos.order_repo import OrderRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class DuplicateCheck:
    is_duplicate: bool
    existing_order: OrderModel | None = None
    matched_on: str | None = None


class DuplicateOrderGuard:
    """
    Has this payment already produced an order?

    Either identifier alone is enough, since a retried request may carry
    only one of them. Storage errors propagate: reporting "not a duplicate"
    on a failed read could charge the customer twice.
    """

    def __init__(self, db: Session):
        self.repo = OrderRepo(db)

    def check_duplicate(
        self,
        merchant_order_id: str | None = None,
        gateway_transaction_id: str | None = None,
    ) -> DuplicateCheck:
        if merchant_order_id:
            existing = self.repo.get_by_merchant_order_id(merchant_order_id)
            if existing:
                logger.info(
                    f"Duplicate order for merchant_order_id {merchant_order_id}: {existing.order_number}"
                )
                return DuplicateCheck(True, existing, "merchant_order_id")

        if gateway_transaction_id:
            existing = self.repo.get_by_gateway_transaction_id(gateway_transaction_id)
            if existing:
                logger.info(
                    f"Duplicate order for gateway_transaction_id {gateway_transaction_id}: "
                    f"{existing.order_number}"
                )
                return DuplicateCheck(True, existing, "gateway_transaction_id")

        return DuplicateCheck(False)
