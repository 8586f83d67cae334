# storefront/domain/pricing.py
"""
Pricing shared by the cart view, the checkout summary and order persistence.

All three must agree to the won, so there is exactly one implementation.
"""
from dataclasses import dataclass
from typing import Iterable, Tuple

from storefront.domain.errors import InvalidInput

FREE_SHIPPING_THRESHOLD = 50_000
FLAT_SHIPPING_FEE = 3_000


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: int
    shipping_fee: int
    grand_total: int


def shipping_fee_for(subtotal: int) -> int:
    return 0 if subtotal >= FREE_SHIPPING_THRESHOLD else FLAT_SHIPPING_FEE


def calculate_subtotal(lines: Iterable[Tuple[int, int]]) -> int:
    lines = list(lines)
    if not lines:
        raise InvalidInput("At least one line item is required")

    subtotal = 0
    for unit_price, quantity in lines:
        if quantity < 1:
            raise InvalidInput(f"Quantity must be at least 1, got {quantity}")
        if unit_price < 0:
            raise InvalidInput(f"Unit price cannot be negative, got {unit_price}")
        subtotal += unit_price * quantity
    return subtotal


def calculate_totals(lines: Iterable[Tuple[int, int]]) -> PriceBreakdown:
    """
    lines: (unit_price, quantity) pairs.
    """
    subtotal = calculate_subtotal(lines)
    fee = shipping_fee_for(subtotal)
    return PriceBreakdown(subtotal=subtotal, shipping_fee=fee, grand_total=subtotal + fee)
