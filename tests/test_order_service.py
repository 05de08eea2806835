import os
import uuid

import pytest
from fastapi.testclient import TestClient

from services.order_service.main import order_app

HEADERS = {"X-Internal-API-Key": os.environ["INTERNAL_API_KEY"]}


@pytest.fixture
def client():
    with TestClient(order_app) as client:
        yield client


def _payload(user_id, **overrides):
    payload = {
        "user_id": user_id,
        "vendor_id": "vendorA",
        "items": [{"product_id": "p1", "name": "Mangoes", "unit_price": "100.00", "quantity": 2}],
        "subtotal": "200.00",
        "delivery_fee_share": "20.00",
        "total_amount": "220.00",
        "payment_method": "cod",
        "address": {
            "name": "Asha Rao", "phone": "9876543210", "pincode": "560001",
            "city": "Bengaluru", "address_text": "12 MG Road",
        },
    }
    payload.update(overrides)
    return payload


def test_create_and_fetch_order(client):
    user_id = f"user-{uuid.uuid4().hex}"
    resp = client.post("/", json=_payload(user_id), headers=HEADERS)

    assert resp.status_code == 201
    order = resp.json()
    assert order["order_status"] == "pending"
    assert order["payment_status"] == "pending"

    fetched = client.get(f"/{order['id']}", headers=HEADERS)
    assert fetched.status_code == 200
    assert fetched.json()["vendor_id"] == "vendorA"


def test_repeated_idempotency_key_returns_existing_order(client):
    user_id = f"user-{uuid.uuid4().hex}"
    headers = {**HEADERS, "Idempotency-Key": uuid.uuid4().hex}

    first = client.post("/", json=_payload(user_id), headers=headers)
    second = client.post("/", json=_payload(user_id), headers=headers)

    assert first.status_code == 201
    assert second.status_code == 200
    assert second.json()["id"] == first.json()["id"]
    assert len(client.get("/", params={"user_id": user_id}, headers=HEADERS).json()) == 1


def test_replay_with_different_amounts_is_409(client):
    user_id = f"user-{uuid.uuid4().hex}"
    headers = {**HEADERS, "Idempotency-Key": uuid.uuid4().hex}
    client.post("/", json=_payload(user_id), headers=headers)

    resp = client.post(
        "/", json=_payload(user_id, delivery_fee_share="40.00", total_amount="240.00"), headers=headers
    )

    assert resp.status_code == 409
    assert "delivery_fee_share" in resp.json()["detail"]
    assert len(client.get("/", params={"user_id": user_id}, headers=HEADERS).json()) == 1


def test_lookup_by_idempotency_key(client):
    key = uuid.uuid4().hex
    created = client.post("/", json=_payload(f"user-{uuid.uuid4().hex}"), headers={**HEADERS, "Idempotency-Key": key}).json()

    found = client.get(f"/by-key/{key}", headers=HEADERS)

    assert found.status_code == 200
    assert found.json()["id"] == created["id"]
    assert client.get(f"/by-key/{uuid.uuid4().hex}", headers=HEADERS).status_code == 404


def test_inconsistent_totals_are_rejected(client):
    resp = client.post("/", json=_payload("user-x", total_amount="999.00"), headers=HEADERS)
    assert resp.status_code == 400


def test_subtotal_must_match_items(client):
    resp = client.post("/", json=_payload("user-x", subtotal="150.00", total_amount="170.00"), headers=HEADERS)
    assert resp.status_code == 400


def test_requires_internal_key(client):
    assert client.post("/", json=_payload("user-x")).status_code == 403
    assert client.get("/health").status_code == 200


def test_unknown_order_is_404(client):
    assert client.get("/does-not-exist", headers=HEADERS).status_code == 404
