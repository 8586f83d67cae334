"""
Pytest configuration and fixtures for the storefront order service.
"""
import os

# Set test environment before importing storefront modules
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["PORTONE_REST_API_KEY"] = ""
os.environ["PORTONE_REST_API_SECRET"] = ""
os.environ.pop("PAYMENT_VERIFICATION_POLICY", None)

import random
from datetime import datetime

import pytest
from sqlalchemy.orm import sessionmaker

import storefront.data.models  # noqa: F401
from storefront.data.database import Base, build_engine
from storefront.domain.order_number import OrderNumberGenerator
from storefront.domain.schemas import PaymentReferenceIn, ShippingAddressIn
from storefront.services.cart_service import CartService
from storefront.services.order_service import OrderService
from storefront.services.order_status_service import OrderStatusService
from storefront.services.payment_verifier import PaymentVerifier

FIXED_NOW = datetime(2025, 3, 14, 15, 30, 22)


class FakeProductClient:
    """In-memory catalog, prices can be changed mid-test."""

    def __init__(self, prices: dict[int, int] | None = None):
        self.prices = dict(prices or {})

    def fetch_product(self, product_id: int) -> dict | None:
        if product_id not in self.prices:
            return None
        return {"id": product_id, "name": f"Product {product_id}", "price": self.prices[product_id]}

    def get_price(self, product_id: int) -> int | None:
        return self.prices.get(product_id)


class FakeLockService:
    def __init__(self):
        self.held: dict[str, str] = {}
        self.acquired: list[str] = []
        self.released: list[str] = []

    def acquire_checkout_lock(self, transaction_id: str, owner: str, ttl: int) -> bool:
        if transaction_id in self.held:
            return False
        self.held[transaction_id] = owner
        self.acquired.append(transaction_id)
        return True

    def release_checkout_lock(self, transaction_id: str, owner: str) -> bool:
        self.released.append(transaction_id)
        if self.held.get(transaction_id) == owner:
            del self.held[transaction_id]
            return True
        return False


class RecordingNotifier:
    def __init__(self):
        self.sent: list[tuple] = []

    def send_order_notification(self, user_id: int, order_number: str, status: str):
        self.sent.append((user_id, order_number, status))


class StubGateway:
    """Stands in for PortOneClient behind a real PaymentVerifier."""

    def __init__(self, payments: dict | None = None, configured: bool = True, error: Exception | None = None):
        self.payments = payments or {}
        self.configured = configured
        self.error = error
        self.queried: list[str] = []

    def get_access_token(self) -> str:
        if self.error:
            raise self.error
        return "test-token"

    def get_payment(self, imp_uid: str, access_token: str) -> dict:
        self.queried.append(imp_uid)
        return self.payments[imp_uid]


class SequenceRandom(random.Random):
    """randrange answers from a fixed list."""

    def __init__(self, values):
        super().__init__(0)
        self.values = list(values)

    def randrange(self, *args, **kwargs):
        return self.values.pop(0)


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    yield session
    session.close()


@pytest.fixture
def catalog() -> FakeProductClient:
    return FakeProductClient({1: 10000, 2: 25000, 3: 4500})


@pytest.fixture
def lock_service() -> FakeLockService:
    return FakeLockService()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def gateway() -> StubGateway:
    return StubGateway()


@pytest.fixture
def number_generator() -> OrderNumberGenerator:
    return OrderNumberGenerator(clock=lambda: FIXED_NOW, rng=random.Random(1234))


@pytest.fixture
def cart_service(db, catalog) -> CartService:
    return CartService(db, catalog)


@pytest.fixture
def make_order_service(db, catalog, gateway, lock_service, notifier, number_generator):
    def _make(policy="permissive-if-unconfigured", **overrides):
        kwargs = dict(
            db=db,
            product_client=catalog,
            verifier=PaymentVerifier(client=gateway, policy=policy),
            lock_service=lock_service,
            notification_service=notifier,
            number_generator=number_generator,
        )
        kwargs.update(overrides)
        return OrderService(**kwargs)

    return _make


@pytest.fixture
def order_service(make_order_service) -> OrderService:
    return make_order_service()


@pytest.fixture
def status_service(db, notifier) -> OrderStatusService:
    return OrderStatusService(db, notification_service=notifier)


@pytest.fixture
def address() -> ShippingAddressIn:
    return ShippingAddressIn(
        recipient_name="Kim Minji",
        recipient_phone="010-1234-5678",
        address="12 Teheran-ro, Gangnam-gu, Seoul",
    )


@pytest.fixture
def paid_reference():
    def _make(imp_uid="imp_001", merchant_uid="M1", amount=23000):
        return PaymentReferenceIn(
            gateway_transaction_id=imp_uid,
            merchant_order_id=merchant_uid,
            paid_amount=amount,
            pay_method="card",
        )

    return _make
