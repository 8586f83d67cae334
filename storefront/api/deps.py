# storefront/api/deps.py
from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.domain.principal import Principal
from storefront.services.cart_service import CartService
from storefront.services.lock_service import LockService
from storefront.services.notification_service import NotificationService
from storefront.services.order_service import OrderService
from storefront.services.order_status_service import OrderStatusService
from storefront.services.payment_verifier import PaymentVerifier
from storefront.services.product_client import ProductClient


def get_principal(
    x_user_id: str | None = Header(None),
    x_user_role: str | None = Header(None),
) -> Principal:
    """
    Authentication happens upstream; it forwards the resolved identity as headers.
    """
    if not x_user_id or not x_user_id.strip().isdigit():
        raise HTTPException(status_code=401, detail={"code": "unauthenticated", "message": "Login required"})
    return Principal(user_id=int(x_user_id), is_admin=(x_user_role or "").lower() == "admin")


def get_product_client() -> ProductClient:
    return ProductClient()


def get_payment_verifier() -> PaymentVerifier:
    return PaymentVerifier()


def get_lock_service() -> LockService:
    return LockService()


def get_notification_service() -> NotificationService:
    return NotificationService()


def get_cart_service(
    db: Session = Depends(get_db),
    product_client: ProductClient = Depends(get_product_client),
) -> CartService:
    return CartService(db=db, product_client=product_client)


def get_order_service(
    db: Session = Depends(get_db),
    product_client: ProductClient = Depends(get_product_client),
    verifier: PaymentVerifier = Depends(get_payment_verifier),
    lock_service: LockService = Depends(get_lock_service),
    notification_service: NotificationService = Depends(get_notification_service),
) -> OrderService:
    return OrderService(
        db=db,
        product_client=product_client,
        verifier=verifier,
        lock_service=lock_service,
        notification_service=notification_service,
    )


def get_order_status_service(
    db: Session = Depends(get_db),
    notification_service: NotificationService = Depends(get_notification_service),
) -> OrderStatusService:
    return OrderStatusService(db=db, notification_service=notification_service)
