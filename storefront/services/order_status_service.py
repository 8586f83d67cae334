# storefront/services/order_status_service.py
from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.domain.errors import Forbidden, NotFound, ValidationError
from storefront.domain.principal import Principal
from storefront.domain.statuses import OrderStatus
from storefront.repos.order_repo import OrderRepo
from storefront.services.notification_service import NotificationService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def _normalize_status(status: str | None) -> str | None:
    if not status:
        return None
    try:
        return OrderStatus(status).value
    except ValueError:
        raise ValidationError(f"Unknown order status: {status}", fields=["status"])


class OrderStatusService:
    """
    Reading orders and moving them through their statuses after creation.
    Status changes are last-write-wins.
    """

    def __init__(self, db: Session, notification_service: NotificationService | None = None):
        self.repo = OrderRepo(db)
        self.notification_service = notification_service or NotificationService()

    #queries
    def list_for_user(self, user_id: int, status: str | None = None) -> list[OrderModel]:
        return self.repo.list_orders(user_id=user_id, status=_normalize_status(status))

    def list_all(
        self,
        principal: Principal,
        status: str | None = None,
        user_id: int | None = None,
    ) -> list[OrderModel]:
        self._require_admin(principal)
        return self.repo.list_orders(user_id=user_id, status=_normalize_status(status))

    def get_one(self, id_or_number: str | int, principal: Principal) -> OrderModel:
        order = self._find(id_or_number)
        self._require_owner_or_admin(order, principal)
        return order

    #commands
    def set_status(self, id_or_number: str | int, new_status: str, principal: Principal) -> OrderModel:
        self._require_admin(principal)
        order = self._find(id_or_number)

        previous = order.status
        order.update_status(new_status)
        order = self.repo.save(order)

        logger.info(f"Order {order.order_number} status {previous} -> {order.status} by admin {principal.user_id}")
        if previous != order.status:
            self._notify(order)
        return order

    def cancel(self, id_or_number: str | int, principal: Principal) -> OrderModel:
        order = self._find(id_or_number)
        self._require_owner_or_admin(order, principal)

        previous = order.status
        #raises IllegalStateTransition before touching the status
        order.cancel()
        order = self.repo.save(order)

        logger.info(f"Order {order.order_number} cancelled by user {principal.user_id}")
        if previous != order.status:
            self._notify(order)
        return order

    def _find(self, id_or_number: str | int) -> OrderModel:
        key = str(id_or_number).strip()
        if key.isdigit():
            order = self.repo.get_order(int(key))
        else:
            order = self.repo.get_by_order_number(key)

        if not order:
            raise NotFound(f"Order {key} not found")
        return order

    @staticmethod
    def _require_admin(principal: Principal) -> None:
        if not principal.is_admin:
            raise Forbidden("Administrator privileges required")

    @staticmethod
    def _require_owner_or_admin(order: OrderModel, principal: Principal) -> None:
        if not principal.is_admin and order.user_id != principal.user_id:
            raise Forbidden("Access to this order is not allowed")

    def _notify(self, order: OrderModel) -> None:
        try:
            self.notification_service.send_order_notification(order.user_id, order.order_number, order.status)
        except Exception as e:
            logger.error(f"Failed to dispatch notification for order {order.order_number}: {e}")
