import random
import re

from storefront.domain.order_number import OrderNumberGenerator
from tests.conftest import FIXED_NOW, SequenceRandom

ORDER_NUMBER_RE = re.compile(r"^ORD-\d{8}-\d{6}-\d{4}$")


def test_format_from_fixed_clock():
    gen = OrderNumberGenerator(clock=lambda: FIXED_NOW, rng=SequenceRandom([417]))
    assert gen.generate() == "ORD-20250314-153022-0417"


def test_suffix_is_zero_padded():
    gen = OrderNumberGenerator(clock=lambda: FIXED_NOW, rng=SequenceRandom([7, 9999]))
    assert gen.generate().endswith("-0007")
    assert gen.generate().endswith("-9999")


def test_default_clock_and_rng_match_format():
    gen = OrderNumberGenerator()
    for _ in range(20):
        assert ORDER_NUMBER_RE.match(gen.generate())


def test_seeded_rng_is_deterministic():
    a = OrderNumberGenerator(clock=lambda: FIXED_NOW, rng=random.Random(42))
    b = OrderNumberGenerator(clock=lambda: FIXED_NOW, rng=random.Random(42))
    assert [a.generate() for _ in range(5)] == [b.generate() for _ in range(5)]
