# storefront/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, Query

from storefront.api.deps import get_order_service, get_order_status_service, get_principal
from storefront.api.errors import http_error
from storefront.domain.errors import OrderError
from storefront.domain.principal import Principal
from storefront.domain.schemas import CheckoutSummaryOut, OrderCreate, OrderOut, StatusUpdateIn
from storefront.services.order_service import OrderService, order_to_dict
from storefront.services.order_status_service import OrderStatusService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("/checkout-summary", response_model=CheckoutSummaryOut)
def checkout_summary(
    principal: Principal = Depends(get_principal),
    svc: OrderService = Depends(get_order_service),
):
    """
    Totals for the current cart. This is the amount to charge at the gateway.
    """
    try:
        return svc.checkout_summary(principal.user_id)
    except OrderError as e:
        raise http_error(e)


@router.post("", response_model=OrderOut, status_code=201)
def create_order(
    payload: OrderCreate,
    principal: Principal = Depends(get_principal),
    svc: OrderService = Depends(get_order_service),
):
    """
    Creates an order from the caller's cart and empties the cart.
    A repeated payment callback gets 409 with the existing order number.
    """
    try:
        order = svc.create_order(
            user_id=principal.user_id,
            shipping_address=payload.shipping_address,
            payment_method=payload.payment_method,
            notes=payload.notes,
            payment=payload.payment_data,
        )
    except OrderError as e:
        raise http_error(e)
    return order_to_dict(order)


@router.get("", response_model=List[OrderOut])
def list_orders(
    status: str | None = Query(None),
    principal: Principal = Depends(get_principal),
    svc: OrderStatusService = Depends(get_order_status_service),
):
    try:
        return [order_to_dict(o) for o in svc.list_for_user(principal.user_id, status)]
    except OrderError as e:
        raise http_error(e)


@router.get("/all", response_model=List[OrderOut])
def list_all_orders(
    status: str | None = Query(None),
    user_id: int | None = Query(None),
    principal: Principal = Depends(get_principal),
    svc: OrderStatusService = Depends(get_order_status_service),
):
    try:
        return [order_to_dict(o) for o in svc.list_all(principal, status=status, user_id=user_id)]
    except OrderError as e:
        raise http_error(e)


@router.get("/{order_ref}", response_model=OrderOut)
def get_order(
    order_ref: str,
    principal: Principal = Depends(get_principal),
    svc: OrderStatusService = Depends(get_order_status_service),
):
    """
    order_ref is either the numeric id or the order number.
    """
    try:
        return order_to_dict(svc.get_one(order_ref, principal))
    except OrderError as e:
        raise http_error(e)


@router.put("/{order_ref}/status", response_model=OrderOut)
def update_order_status(
    order_ref: str,
    payload: StatusUpdateIn,
    principal: Principal = Depends(get_principal),
    svc: OrderStatusService = Depends(get_order_status_service),
):
    try:
        return order_to_dict(svc.set_status(order_ref, payload.status, principal))
    except OrderError as e:
        raise http_error(e)


@router.delete("/{order_ref}", response_model=OrderOut)
def cancel_order(
    order_ref: str,
    principal: Principal = Depends(get_principal),
    svc: OrderStatusService = Depends(get_order_status_service),
):
    try:
        return order_to_dict(svc.cancel(order_ref, principal))
    except OrderError as e:
        raise http_error(e)
