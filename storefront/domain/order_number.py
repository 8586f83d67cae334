# storefront/domain/order_number.py
import random
from datetime import datetime
from typing import Callable

ORDER_NUMBER_PREFIX = "ORD"


def local_now() -> datetime:
    return datetime.now().astimezone()


class OrderNumberGenerator:
    """
    ORD-YYYYMMDD-HHMMSS-NNNN

    Clock and random source are injected so tests can pin both.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = local_now,
        rng: random.Random | None = None,
    ):
        self.clock = clock
        self.rng = rng or random.SystemRandom()

    def generate(self) -> str:
        now = self.clock()
        suffix = self.rng.randrange(10_000)
        return f"{ORDER_NUMBER_PREFIX}-{now:%Y%m%d}-{now:%H%M%S}-{suffix:04d}"
