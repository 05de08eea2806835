"""Collaborators the checkout engine depends on.

The HTTP implementations live in clients.py; tests plug in in-memory fakes.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal

from .schemas import SubOrderDraft


@dataclass(frozen=True)
class StoredOrder:
    order_id: str
    delivery_fee_share: Decimal
    replayed: bool = False


class CatalogLookup(ABC):
    @abstractmethod
    async def resolve_vendor(self, product_id: str) -> str | None:
        """Owning vendor id, or None when the product is unknown or has no vendor."""
        ...


class OrderStore(ABC):
    @abstractmethod
    async def insert(self, sub_order: SubOrderDraft, idempotency_key: str) -> StoredOrder:
        """Persist one sub-order.

        Writes are independent of each other. Reusing a key returns the row
        written the first time (replayed=True) as long as the amounts match it;
        a replay with different amounts raises StoreError. Raises StoreError on
        any other failure too.
        """
        ...

    @abstractmethod
    async def find(self, idempotency_key: str) -> StoredOrder | None:
        """The row already written under this key, if any."""
        ...


class VendorNotifier(ABC):
    @abstractmethod
    async def notify(
        self,
        vendor_id: str,
        order_id: str,
        order_number: str,
        customer_name: str,
        total_amount: Decimal,
        item_count: int | None = None,
    ) -> None:
        """Best-effort out-of-band alert to the vendor.

        Raises NotifyRejected when retrying cannot help (no device token,
        bad request) and NotifyError for anything transient.
        """
        ...
