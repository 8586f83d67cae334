from typing import Dict, Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.domain.errors import ConcurrencyConflict, InvalidInput, ProductUnavailableError
from storefront.domain.pricing import PriceBreakdown, calculate_subtotal, calculate_totals
from storefront.repos.cart_repo import CartRepo
from storefront.services.product_client import ProductClient
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CartService:
    """
    One cart per user, created on first access.
    commands (add, update, remove, clear) change state and recompute totals,
    queries (get) only read.
    """

    def __init__(self, db: Session, product_client: ProductClient):
        self.repo = CartRepo(db)
        self.product_client = product_client

    #query
    def get_cart(self, user_id: int) -> Dict[str, Any]:
        cart = self._get_or_create(user_id)
        items = self.repo.get_cart_items(cart.id)

        #prices are read live, the cart never stores them
        lines = []
        priced = []
        for i in items:
            price = self.product_client.get_price(i.product_id)
            lines.append(
                {
                    "product_id": i.product_id,
                    "quantity": i.quantity,
                    "unit_price": price,
                    "available": price is not None,
                }
            )
            if price is not None:
                priced.append((price, i.quantity))

        #same calculator as the checkout summary, so the two always agree
        totals = calculate_totals(priced) if priced else PriceBreakdown(0, 0, 0)

        return {
            "cart_id": cart.id,
            "user_id": cart.user_id,
            "items": lines,
            "total_items": sum(i.quantity for i in items),
            "total_amount": totals.subtotal,
            "subtotal": totals.subtotal,
            "shipping_fee": totals.shipping_fee,
            "grand_total": totals.grand_total,
        }

    def find_cart(self, user_id: int) -> CartModel | None:
        return self.repo.get_by_user(user_id)

    def list_items(self, cart_id: int) -> list[CartItemModel]:
        return self.repo.get_cart_items(cart_id)

    #commands
    def add_item(self, user_id: int, product_id: int, quantity: int = 1) -> Dict[str, Any]:
        if quantity < 1:
            raise InvalidInput("Quantity must be at least 1")

        if self.product_client.get_price(product_id) is None:
            raise ProductUnavailableError(product_id)

        cart = self._get_or_create(user_id)
        existing_item = self.repo.get_cart_item(cart.id, product_id)

        if existing_item:
            logger.info(
                f"Product {product_id} already in cart {cart.id}, quantity "
                f"{existing_item.quantity} -> {existing_item.quantity + quantity}"
            )
            existing_item.quantity += quantity
            self.repo.add_cart_item(existing_item)
        else:
            logger.info(f"Adding product {product_id} to cart {cart.id}")
            self.repo.add_cart_item(
                CartItemModel(cart_id=cart.id, product_id=product_id, quantity=quantity)
            )

        self._commit_totals(cart)
        return self.get_cart(user_id)

    def update_item(self, user_id: int, product_id: int, quantity: int) -> Dict[str, Any]:
        cart = self._get_or_create(user_id)
        item = self.repo.get_cart_item(cart.id, product_id)

        if not item:
            raise InvalidInput(f"Product {product_id} is not in the cart")

        #an item is never stored with quantity 0
        if quantity <= 0:
            return self.remove_item(user_id, product_id)

        item.quantity = quantity
        self.repo.add_cart_item(item)
        self._commit_totals(cart)
        return self.get_cart(user_id)

    def remove_item(self, user_id: int, product_id: int) -> Dict[str, Any]:
        cart = self._get_or_create(user_id)
        logger.info(f"Removing product {product_id} from cart {cart.id}")

        self.repo.delete_cart_item(cart.id, product_id)
        self._commit_totals(cart)
        return self.get_cart(user_id)

    def clear_cart(self, user_id: int) -> None:
        cart = self.repo.get_by_user(user_id)
        if not cart:
            return

        self.repo.delete_all_items(cart.id)
        self._commit_totals(cart)
        logger.info(f"Cart {cart.id} of user {user_id} cleared")

    def _get_or_create(self, user_id: int) -> CartModel:
        cart = self.repo.get_by_user(user_id)
        if cart:
            return cart

        try:
            created = self.repo.create_cart(
                CartModel(user_id=user_id, total_amount=0, total_items=0, version=1)
            )
        except IntegrityError:
            #a concurrent first request created it already
            self.repo.rollback()
            cart = self.repo.get_by_user(user_id)
            if cart is None:
                raise
            logger.info(f"Cart {cart.id} of user {user_id} created concurrently, reusing it")
            return cart

        logger.info(f"Created cart {created.id} for user {user_id}")
        return created

    def _commit_totals(self, cart: CartModel) -> None:
        items = self.repo.get_cart_items(cart.id)

        total_items = sum(i.quantity for i in items)
        total_amount = 0
        priced = []
        for i in items:
            price = self.product_client.get_price(i.product_id)
            #products gone from the catalog do not count towards the total
            if price is not None:
                priced.append((price, i.quantity))
        if priced:
            total_amount = calculate_subtotal(priced)

        #optimistic locking on the version column
        rowcount = self.repo.update_cart_version(
            cart_id=cart.id,
            old_version=cart.version,
            new_data={
                "version": cart.version + 1,
                "total_items": total_items,
                "total_amount": total_amount,
            },
        )

        if rowcount == 0:
            self.repo.rollback()
            raise ConcurrencyConflict("Cart was modified by another request")

        self.repo.commit()
