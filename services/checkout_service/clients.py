"""HTTP adapters for the catalog, order store and vendor notifier services.

All three share one httpx.AsyncClient and send the internal API key, so the
receiving services only accept these calls from server-side code.
"""
from decimal import Decimal
from urllib.parse import quote

import httpx

from shared.config.settings import NOTIFICATION_URL, ORDER_URL, PRODUCT_URL
from shared.security import INTERNAL_API_HEADERS

from .errors import NotifyError, NotifyRejected, StoreError
from .ports import CatalogLookup, OrderStore, StoredOrder, VendorNotifier
from .schemas import SubOrderDraft


class HttpCatalogLookup(CatalogLookup):
    def __init__(self, client: httpx.AsyncClient, base_url: str = PRODUCT_URL):
        self.client = client
        self.base_url = base_url.rstrip("/")

    async def resolve_vendor(self, product_id: str) -> str | None:
        resp = await self.client.get(f"{self.base_url}/{quote(product_id, safe='')}", headers=INTERNAL_API_HEADERS)
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return resp.json().get("vendor_id") or None


class HttpOrderStore(OrderStore):
    def __init__(self, client: httpx.AsyncClient, base_url: str = ORDER_URL):
        self.client = client
        self.base_url = base_url.rstrip("/")

    @staticmethod
    def _stored(body: dict, replayed: bool) -> StoredOrder:
        return StoredOrder(str(body["id"]), Decimal(str(body["delivery_fee_share"])), replayed)

    async def insert(self, sub_order: SubOrderDraft, idempotency_key: str) -> StoredOrder:
        headers = {**INTERNAL_API_HEADERS, "Idempotency-Key": idempotency_key}
        try:
            resp = await self.client.post(f"{self.base_url}/", json=sub_order.model_dump(mode="json"), headers=headers)
        except httpx.HTTPError as e:
            raise StoreError(f"Order store unreachable: {e!r}") from e
        if resp.is_error:
            raise StoreError(f"Order store returned {resp.status_code}: {resp.text[:200]}")
        # 201 = new row, 200 = the row already stored under this key
        return self._stored(resp.json(), replayed=resp.status_code == 200)

    async def find(self, idempotency_key: str) -> StoredOrder | None:
        try:
            resp = await self.client.get(
                f"{self.base_url}/by-key/{quote(idempotency_key, safe='')}", headers=INTERNAL_API_HEADERS
            )
        except httpx.HTTPError as e:
            raise StoreError(f"Order store unreachable: {e!r}") from e
        if resp.status_code == 404:
            return None
        if resp.is_error:
            raise StoreError(f"Order store returned {resp.status_code}: {resp.text[:200]}")
        return self._stored(resp.json(), replayed=True)


class HttpVendorNotifier(VendorNotifier):
    def __init__(self, client: httpx.AsyncClient, base_url: str = NOTIFICATION_URL):
        self.client = client
        self.base_url = base_url.rstrip("/")

    async def notify(
        self,
        vendor_id: str,
        order_id: str,
        order_number: str,
        customer_name: str,
        total_amount: Decimal,
        item_count: int | None = None,
    ) -> None:
        payload = {
            "vendor_id": vendor_id,
            "order_id": order_id,
            "order_number": order_number,
            "customer_name": customer_name,
            "total_amount": str(total_amount),
            "item_count": item_count,
        }
        try:
            resp = await self.client.post(f"{self.base_url}/vendor-orders", json=payload, headers=INTERNAL_API_HEADERS)
        except httpx.HTTPError as e:
            raise NotifyError(f"Notifier unreachable: {e!r}") from e
        # 408/429 are transient; any other 4xx would be refused again
        if resp.is_client_error and resp.status_code not in (408, 429):
            raise NotifyRejected(f"Notifier rejected alert with {resp.status_code}: {resp.text[:200]}")
        if resp.is_error:
            raise NotifyError(f"Notifier returned {resp.status_code}: {resp.text[:200]}")
