"""Cart -> vendor groups -> unsaved sub-orders.

Everything here except VendorResolver is pure: no I/O, no shared state.
"""
import asyncio
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_DOWN
from typing import Dict, List, Mapping, Sequence

import structlog

from shared.observability import ecomm_unresolved_items_total

from .errors import NoVendorResolvable
from .ports import CatalogLookup
from .schemas import Cart, CartLineItem, SubOrderDraft, UnresolvedItem

logger = structlog.get_logger(__name__)

# Smallest currency unit (paise)
CURRENCY_QUANTUM = Decimal("0.01")


@dataclass(frozen=True)
class Resolution:
    vendor_id: str | None
    reason: str | None = None

    @property
    def resolved(self) -> bool:
        return self.vendor_id is not None


@dataclass
class VendorGroup:
    vendor_id: str
    items: List[CartLineItem] = field(default_factory=list)

    @property
    def subtotal(self) -> Decimal:
        return sum((item.line_total for item in self.items), Decimal("0"))


@dataclass
class Partition:
    groups: List[VendorGroup]
    unresolved: List[UnresolvedItem]


class VendorResolver:
    """Maps product ids to their owning vendor through the catalog. Caches nothing."""

    def __init__(self, catalog: CatalogLookup):
        self.catalog = catalog

    async def resolve(self, product_id: str) -> Resolution:
        try:
            vendor_id = await self.catalog.resolve_vendor(product_id)
        except Exception as e:
            logger.warning("vendor_lookup_failed", product_id=product_id, error=repr(e))
            return Resolution(None, f"catalog lookup failed: {e}")
        if not vendor_id:
            logger.warning("vendor_unresolved", product_id=product_id)
            return Resolution(None, "product not found or has no vendor")
        return Resolution(vendor_id)

    async def resolve_many(self, product_ids: Sequence[str], timeout: float | None = None) -> Dict[str, Resolution]:
        """Resolve each distinct id once, concurrently.

        Lookups still running when the timeout expires are cancelled and count as unresolved.
        """
        distinct = list(dict.fromkeys(product_ids))
        if not distinct:
            return {}

        tasks = {pid: asyncio.create_task(self.resolve(pid)) for pid in distinct}
        done, pending = await asyncio.wait(tasks.values(), timeout=timeout)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        results = {}
        for pid, task in tasks.items():
            if task in done:
                results[pid] = task.result()
            else:
                logger.warning("vendor_lookup_timed_out", product_id=pid)
                results[pid] = Resolution(None, "catalog lookup timed out")
        return results


def partition_cart(cart: Cart, resolutions: Dict[str, Resolution]) -> Partition:
    """Group resolvable items by vendor.

    Groups come out in the order each vendor first appears in the cart, and
    items keep their cart order inside a group. That order decides which
    sub-order becomes the primary one.
    """
    groups: Dict[str, VendorGroup] = {}
    unresolved: List[UnresolvedItem] = []

    for item in cart.items:
        resolution = resolutions.get(item.product_id, Resolution(None, "not looked up"))
        if not resolution.resolved:
            unresolved.append(UnresolvedItem(product_id=item.product_id, name=item.name, reason=resolution.reason))
            continue
        if resolution.vendor_id not in groups:
            groups[resolution.vendor_id] = VendorGroup(resolution.vendor_id)
        groups[resolution.vendor_id].items.append(item)

    if not groups:
        if not cart.vendor_id:
            raise NoVendorResolvable(
                f"None of the {len(cart.items)} cart items could be matched to a vendor"
            )
        # The whole cart goes to the hinted vendor, so nothing is dropped
        logger.info("vendor_hint_fallback", vendor_id=cart.vendor_id, item_count=len(cart.items))
        return Partition(groups=[VendorGroup(cart.vendor_id, list(cart.items))], unresolved=[])

    if unresolved:
        ecomm_unresolved_items_total.inc(len(unresolved))
    return Partition(groups=list(groups.values()), unresolved=unresolved)


def allocate_delivery_fee(
    delivery_fee: Decimal,
    groups: Sequence[VendorGroup],
    settled: Mapping[str, Decimal] | None = None,
) -> List[Decimal]:
    """Split the flat fee equally across groups (not weighted by subtotal).

    Each share is rounded down to the currency unit; the leftover goes to the
    group with the largest subtotal (first one wins a tie), so the shares
    always add up to exactly delivery_fee.

    settled maps vendor ids to shares already persisted by an earlier attempt
    of the same checkout. Those groups keep their stored share and only what
    is left of the fee is split over the others.
    """
    if not groups:
        raise ValueError("Cannot allocate a delivery fee across zero vendor groups")

    settled = settled or {}
    shares = [settled.get(group.vendor_id) for group in groups]
    open_slots = [i for i, share in enumerate(shares) if share is None]
    if not open_slots:
        return shares

    taken = sum((share for share in shares if share is not None), Decimal("0"))
    fee = max(delivery_fee - taken, Decimal("0"))

    count = len(open_slots)
    base_share = (fee / count).quantize(CURRENCY_QUANTUM, rounding=ROUND_DOWN)
    for i in open_slots:
        shares[i] = base_share

    remainder = fee - base_share * count
    if remainder:
        holder = max(open_slots, key=lambda i: (groups[i].subtotal, -i))
        shares[holder] += remainder
    return shares


def build_sub_order(group: VendorGroup, cart: Cart, delivery_fee_share: Decimal) -> SubOrderDraft:
    subtotal = group.subtotal
    return SubOrderDraft(
        user_id=cart.user_id,
        vendor_id=group.vendor_id,
        items=list(group.items),
        subtotal=subtotal,
        delivery_fee_share=delivery_fee_share,
        total_amount=subtotal + delivery_fee_share,
        payment_method=cart.payment_method,
        address=cart.address,
    )
