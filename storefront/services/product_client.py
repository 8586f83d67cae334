# storefront/services/product_client.py
from decimal import Decimal, InvalidOperation

import requests

from storefront.domain.errors import InvalidInput
from storefront.utils.retry import http_retry
from storefront.utils.settings import PRODUCT_SERVICE_URL
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def to_amount(price) -> int:
    """Catalog prices are whole won; anything else is rejected."""
    try:
        value = Decimal(str(price))
    except (InvalidOperation, ValueError):
        raise InvalidInput(f"Invalid price: {price!r}")
    if value != value.to_integral_value():
        raise InvalidInput(f"Price must be a whole amount, got {price!r}")
    return int(value)


class ProductClient:
    def __init__(self, base_url: str | None = None, timeout: int = 2):
        self.base_url = (base_url or PRODUCT_SERVICE_URL).rstrip("/")
        self.timeout = timeout

    @http_retry()
    def fetch_product(self, product_id: int) -> dict | None:
        url = f"{self.base_url}/products/{product_id}"
        logger.info(f"ProductClient GET {url}")

        resp = requests.get(url, timeout=self.timeout)
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return resp.json()

    def get_price(self, product_id: int) -> int | None:
        pdata = self.fetch_product(product_id)
        if pdata is None:
            return None
        return to_amount(pdata["price"])
