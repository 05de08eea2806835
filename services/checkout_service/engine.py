import asyncio

import structlog

from shared.config.settings import (
    CHECKOUT_DEADLINE_SECONDS,
    NOTIFY_BACKOFF_SECONDS,
    NOTIFY_MAX_ATTEMPTS,
    WRITE_CONCURRENCY,
)
from shared.observability import ecomm_checkout_duration_seconds, ecomm_checkout_total

from .errors import CheckoutError
from .fanout import FulfillmentWriter, NotificationDispatcher, aggregate_results
from .partitioning import VendorResolver, allocate_delivery_fee, build_sub_order, partition_cart
from .ports import CatalogLookup, OrderStore, VendorNotifier
from .schemas import Cart, FulfillmentResult

logger = structlog.get_logger(__name__)

UNVERIFIED_REASON = "could not check the order store for an earlier attempt of this checkout"


class CheckoutEngine:
    """Turns one cart into one persisted sub-order per vendor.

    resolve vendors -> partition -> find rows stored by an earlier attempt
    -> split what is left of the delivery fee -> build sub-orders
    -> write each independently -> aggregate -> notify vendors (detached)

    The engine keeps no state between calls apart from the notification tasks
    it has not finished yet, so concurrent checkouts need no locking.
    """

    def __init__(
        self,
        catalog: CatalogLookup,
        store: OrderStore,
        notifier: VendorNotifier,
        deadline_seconds: float = CHECKOUT_DEADLINE_SECONDS,
        write_concurrency: int = WRITE_CONCURRENCY,
        notify_max_attempts: int = NOTIFY_MAX_ATTEMPTS,
        notify_backoff_seconds: float = NOTIFY_BACKOFF_SECONDS,
    ):
        self.deadline_seconds = deadline_seconds
        self.resolver = VendorResolver(catalog)
        self.writer = FulfillmentWriter(store, write_concurrency)
        self.dispatcher = NotificationDispatcher(notifier, notify_max_attempts, notify_backoff_seconds)

    async def create_order(self, cart: Cart) -> FulfillmentResult:
        """Raises NoVendorResolvable or AllWritesFailed when nothing could be placed."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.deadline_seconds

        def remaining() -> float:
            return max(0.0, deadline - loop.time())

        log = logger.bind(user_id=cart.user_id, submission_id=cart.submission_id)

        with ecomm_checkout_duration_seconds.time():
            try:
                resolutions = await self.resolver.resolve_many(
                    [item.product_id for item in cart.items], timeout=remaining()
                )
                partition = partition_cart(cart, resolutions)
                # Groups stored by an earlier attempt of this submission keep their fee share
                settlement = await self.writer.find_settled(
                    cart.user_id,
                    cart.submission_id,
                    [group.vendor_id for group in partition.groups],
                    timeout=remaining(),
                )
                fee_shares = allocate_delivery_fee(cart.delivery_fee, partition.groups, settlement.shares)
                sub_orders = [
                    build_sub_order(group, cart, share)
                    for group, share in zip(partition.groups, fee_shares)
                ]
                held = {}
                if not settlement.complete:
                    # Without knowing every stored share, a new row could take fee an old one already holds
                    held = {
                        group.vendor_id: UNVERIFIED_REASON
                        for group in partition.groups
                        if group.vendor_id not in settlement.shares
                    }
                outcomes = await self.writer.write_all(
                    sub_orders, cart.submission_id, timeout=remaining(), held=held
                )
                result = aggregate_results(outcomes, partition.unresolved)
            except CheckoutError as e:
                log.error("checkout_failed", error=str(e))
                ecomm_checkout_total.labels(status="failed").inc()
                raise

        # Detached from the response: the orders already exist
        self.dispatcher.dispatch(outcomes, customer_name=cart.address.name)

        status = "partial" if result.partition_errors or result.unresolved_items else "success"
        ecomm_checkout_total.labels(status=status).inc()
        log.info(
            "checkout_completed",
            status=status,
            order_count=result.order_count,
            primary_order_id=result.primary_order_id,
            failed_groups=len(result.partition_errors),
            unresolved_items=len(result.unresolved_items),
        )
        return result
