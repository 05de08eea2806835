import asyncio
import os
import tempfile
import uuid

# Must be set before any project module reads its configuration
_DB_DIR = tempfile.mkdtemp(prefix="vendor-checkout-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_DB_DIR}/test.db")
os.environ.setdefault("INTERNAL_API_KEY", "test-internal-key")
os.environ["OTEL_ENABLED"] = "false"
os.environ["METRICS_ENABLED"] = "false"
os.environ["PUSH_BACKEND"] = "fake"

import pytest

from services.checkout_service.engine import CheckoutEngine
from services.checkout_service.errors import NotifyError, NotifyRejected, StoreError
from services.checkout_service.ports import CatalogLookup, OrderStore, StoredOrder, VendorNotifier
from services.checkout_service.schemas import Cart

INTERNAL_HEADERS = {"X-Internal-API-Key": os.environ["INTERNAL_API_KEY"]}


class FakeCatalog(CatalogLookup):
    def __init__(self, vendors: dict | None = None):
        self.vendors = dict(vendors or {})
        self.failing: set[str] = set()
        self.delays: dict[str, float] = {}
        self.calls: list[str] = []

    async def resolve_vendor(self, product_id: str) -> str | None:
        self.calls.append(product_id)
        if product_id in self.delays:
            await asyncio.sleep(self.delays[product_id])
        if product_id in self.failing:
            raise RuntimeError("catalog unavailable")
        return self.vendors.get(product_id)


class FakeOrderStore(OrderStore):
    """Keyed by idempotency key, like the real order service."""

    def __init__(self):
        self.records: dict[str, tuple[str, object]] = {}
        self.failing_vendors: set[str] = set()
        self.delays: dict[str, float] = {}
        self.in_flight = 0
        self.max_in_flight = 0

    async def insert(self, sub_order, idempotency_key: str) -> StoredOrder:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(sub_order.vendor_id, 0))
            if sub_order.vendor_id in self.failing_vendors:
                raise StoreError(f"write rejected for {sub_order.vendor_id}")
            if idempotency_key in self.records:
                order_id, stored = self.records[idempotency_key]
                if (stored.delivery_fee_share, stored.total_amount) != (sub_order.delivery_fee_share, sub_order.total_amount):
                    raise StoreError(f"idempotency key reused with different amounts for {sub_order.vendor_id}")
                return StoredOrder(order_id, stored.delivery_fee_share, replayed=True)
            order_id = uuid.uuid4().hex
            self.records[idempotency_key] = (order_id, sub_order)
            return StoredOrder(order_id, sub_order.delivery_fee_share)
        finally:
            self.in_flight -= 1

    async def find(self, idempotency_key: str) -> StoredOrder | None:
        if idempotency_key not in self.records:
            return None
        order_id, stored = self.records[idempotency_key]
        return StoredOrder(order_id, stored.delivery_fee_share, replayed=True)

    @property
    def orders(self) -> list:
        return [sub_order for _, sub_order in self.records.values()]


class FakeNotifier(VendorNotifier):
    def __init__(self):
        self.sent: list[dict] = []
        self.attempts = 0
        self.failures_before_success = 0
        self.always_fail = False
        self.rejecting = False
        self.gate: asyncio.Event | None = None

    async def notify(self, vendor_id, order_id, order_number, customer_name, total_amount, item_count=None):
        self.attempts += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.rejecting:
            raise NotifyRejected("vendor has no device token")
        if self.always_fail or self.failures_before_success > 0:
            self.failures_before_success -= 1
            raise NotifyError("push gateway down")
        self.sent.append({
            "vendor_id": vendor_id,
            "order_id": order_id,
            "order_number": order_number,
            "customer_name": customer_name,
            "total_amount": total_amount,
            "item_count": item_count,
        })


@pytest.fixture(scope="session", autouse=True)
def setup_db():
    from shared.config.database import Base, engine
    from services.catalog_service import models as catalog_models  # noqa: F401
    from services.order_service import models as order_models  # noqa: F401
    from services.notification_service import models as notification_models  # noqa: F401

    async def create_all():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(create_all())
    yield


@pytest.fixture
def catalog():
    return FakeCatalog({"p1": "vendorA", "p2": "vendorB", "p3": "vendorA", "p4": "vendorC"})


@pytest.fixture
def store():
    return FakeOrderStore()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def engine(catalog, store, notifier):
    return CheckoutEngine(catalog, store, notifier, deadline_seconds=2.0, notify_backoff_seconds=0)


@pytest.fixture
def make_cart():
    def _make_cart(items, delivery_fee="40", **overrides):
        data = {
            "user_id": "user-1",
            "items": [
                {"product_id": pid, "name": f"Product {pid}", "unit_price": str(price), "quantity": qty}
                for pid, price, qty in items
            ],
            "delivery_fee": delivery_fee,
            "payment_method": "cod",
            "address": {
                "name": "Asha Rao",
                "phone": "9876543210",
                "pincode": "560001",
                "city": "Bengaluru",
                "address_text": "12 MG Road",
            },
        }
        data.update(overrides)
        return Cart.model_validate(data)
    return _make_cart
