# storefront/api/routers/carts.py
from fastapi import APIRouter, Depends

from storefront.api.deps import get_cart_service, get_principal
from storefront.api.errors import http_error
from storefront.domain.errors import OrderError
from storefront.domain.principal import Principal
from storefront.domain.schemas import CartOut, ItemIn, ItemQuantityIn
from storefront.services.cart_service import CartService

router = APIRouter(prefix="/carts", tags=["carts"])


@router.get("/me", response_model=CartOut)
def get_cart(
    principal: Principal = Depends(get_principal),
    svc: CartService = Depends(get_cart_service),
):
    try:
        return svc.get_cart(principal.user_id)
    except OrderError as e:
        raise http_error(e)


@router.post("/me/items", response_model=CartOut)
def add_item(
    payload: ItemIn,
    principal: Principal = Depends(get_principal),
    svc: CartService = Depends(get_cart_service),
):
    try:
        return svc.add_item(principal.user_id, payload.product_id, payload.quantity)
    except OrderError as e:
        raise http_error(e)


@router.put("/me/items/{product_id}", response_model=CartOut)
def update_item(
    product_id: int,
    payload: ItemQuantityIn,
    principal: Principal = Depends(get_principal),
    svc: CartService = Depends(get_cart_service),
):
    try:
        return svc.update_item(principal.user_id, product_id, payload.quantity)
    except OrderError as e:
        raise http_error(e)


@router.delete("/me/items/{product_id}", response_model=CartOut)
def remove_item(
    product_id: int,
    principal: Principal = Depends(get_principal),
    svc: CartService = Depends(get_cart_service),
):
    try:
        return svc.remove_item(principal.user_id, product_id)
    except OrderError as e:
        raise http_error(e)


@router.delete("/me", response_model=CartOut)
def clear_cart(
    principal: Principal = Depends(get_principal),
    svc: CartService = Depends(get_cart_service),
):
    try:
        svc.clear_cart(principal.user_id)
        return svc.get_cart(principal.user_id)
    except OrderError as e:
        raise http_error(e)
