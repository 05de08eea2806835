"""Checkout engine driving the real catalog, order and notification services over HTTP."""
import os
import uuid
from decimal import Decimal

import httpx
import pytest

from main import app
from services.checkout_service.clients import HttpCatalogLookup, HttpOrderStore, HttpVendorNotifier
from services.checkout_service.engine import CheckoutEngine
from services.notification_service.channel import FakePushAdapter, get_push_channel
from services.notification_service.main import notification_app

HEADERS = {"X-Internal-API-Key": os.environ["INTERNAL_API_KEY"]}
BASE = "http://cluster"


@pytest.fixture
def push():
    adapter = FakePushAdapter()
    notification_app.dependency_overrides[get_push_channel] = lambda: adapter
    yield adapter
    notification_app.dependency_overrides.clear()


@pytest.fixture
async def client():
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url=BASE) as client:
        yield client


@pytest.fixture
def checkout_engine(client):
    return CheckoutEngine(
        catalog=HttpCatalogLookup(client, f"{BASE}/products"),
        store=HttpOrderStore(client, f"{BASE}/orders"),
        notifier=HttpVendorNotifier(client, f"{BASE}/notifications"),
        notify_backoff_seconds=0,
    )


async def _product(client, name, price, vendor_id):
    resp = await client.post("/products/", json={"name": name, "price": price, "stock": 10, "vendor_id": vendor_id}, headers=HEADERS)
    resp.raise_for_status()
    return resp.json()["id"]


async def test_checkout_across_services(client, checkout_engine, push, make_cart):
    vendor_a, vendor_b = f"vendor-{uuid.uuid4().hex}", f"vendor-{uuid.uuid4().hex}"
    mangoes = await _product(client, "Mangoes", "100.00", vendor_a)
    rice = await _product(client, "Rice", "50.00", vendor_b)
    await client.post("/notifications/tokens", json={"vendor_id": vendor_a, "token": "tok-a"}, headers=HEADERS)
    user_id = f"user-{uuid.uuid4().hex}"
    cart = make_cart([(mangoes, "100", 2), (rice, "50", 1)], delivery_fee="40", user_id=user_id)

    result = await checkout_engine.create_order(cart)
    await checkout_engine.dispatcher.drain()

    assert result.order_count == 2
    orders = (await client.get("/orders/", params={"user_id": user_id}, headers=HEADERS)).json()
    totals = {o["vendor_id"]: Decimal(str(o["total_amount"])) for o in orders}
    assert totals == {vendor_a: Decimal("220"), vendor_b: Decimal("70")}

    # vendor B never registered a device: its alert fails quietly, vendor A's goes out
    assert [p["device_token"] for p in push.sent_pushes] == ["tok-a"]

    # Resubmitting the same checkout reuses the stored orders
    again = await checkout_engine.create_order(cart)
    assert again.all_order_ids == result.all_order_ids
    assert len((await client.get("/orders/", params={"user_id": user_id}, headers=HEADERS)).json()) == 2
    await checkout_engine.dispatcher.drain()
    # Vendor A's repeat alert is deduplicated by the notification service
    assert len(push.sent_pushes) == 1


class FlakyCatalog(HttpCatalogLookup):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.failing: set[str] = set()

    async def resolve_vendor(self, product_id):
        if product_id in self.failing:
            raise httpx.ConnectError("catalog unreachable")
        return await super().resolve_vendor(product_id)


async def test_retry_after_lookup_failure_charges_delivery_once(client, push, make_cart):
    catalog = FlakyCatalog(client, f"{BASE}/products")
    engine = CheckoutEngine(
        catalog=catalog,
        store=HttpOrderStore(client, f"{BASE}/orders"),
        notifier=HttpVendorNotifier(client, f"{BASE}/notifications"),
        notify_backoff_seconds=0,
    )
    vendor_a, vendor_b = f"vendor-{uuid.uuid4().hex}", f"vendor-{uuid.uuid4().hex}"
    mangoes = await _product(client, "Mangoes", "100.00", vendor_a)
    rice = await _product(client, "Rice", "50.00", vendor_b)
    user_id = f"user-{uuid.uuid4().hex}"
    cart = make_cart([(mangoes, "100", 2), (rice, "50", 1)], delivery_fee="40", user_id=user_id)

    catalog.failing.add(rice)
    first = await engine.create_order(cart)
    catalog.failing.clear()
    second = await engine.create_order(cart)
    await engine.dispatcher.drain()

    assert (first.order_count, second.order_count) == (1, 2)
    orders = (await client.get("/orders/", params={"user_id": user_id}, headers=HEADERS)).json()
    assert sum(Decimal(str(o["delivery_fee_share"])) for o in orders) == Decimal("40")
    assert sum(Decimal(str(o["total_amount"])) for o in orders) == Decimal("290")
