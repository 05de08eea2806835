"""Independent per-vendor writes and notifications, and folding their outcomes into one result."""
import asyncio
import hashlib
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Mapping, Sequence, Set

import structlog

from shared.observability import (
    ecomm_pending_notifications,
    ecomm_suborder_writes_total,
    ecomm_vendor_notifications_total,
)

from .errors import AllWritesFailed, NotifyRejected
from .ports import OrderStore, VendorNotifier
from .schemas import FulfillmentResult, PartitionError, SubOrderDraft, UnresolvedItem

logger = structlog.get_logger(__name__)


def idempotency_key(user_id: str, submission_id: str, vendor_id: str) -> str:
    return hashlib.sha256(f"{user_id}:{submission_id}:{vendor_id}".encode()).hexdigest()


def order_number_for(order_id: str) -> str:
    """Short order number shown to customers and vendors."""
    return order_id[:8].upper()


@dataclass
class WriteOutcome:
    index: int
    sub_order: SubOrderDraft
    success: bool
    order_id: str | None = None
    error: str | None = None
    replayed: bool = False

    @property
    def vendor_id(self) -> str:
        return self.sub_order.vendor_id


@dataclass
class Settlement:
    """What an earlier attempt of the same submission already stored."""
    shares: Dict[str, Decimal]
    # vendors whose lookup failed or timed out; they may or may not have a row
    unverified: List[str]

    @property
    def complete(self) -> bool:
        return not self.unverified


class FulfillmentWriter:
    """Persists each sub-order on its own; one group's failure never stops another's write."""

    def __init__(self, store: OrderStore, max_concurrency: int = 4):
        self.store = store
        self.max_concurrency = max(1, max_concurrency)

    async def find_settled(
        self,
        user_id: str,
        submission_id: str,
        vendor_ids: Sequence[str],
        timeout: float | None = None,
    ) -> Settlement:
        """Fee shares already persisted for these vendors by an earlier attempt of this submission."""
        if not vendor_ids:
            return Settlement({}, [])

        tasks = {
            vendor_id: asyncio.create_task(self.store.find(idempotency_key(user_id, submission_id, vendor_id)))
            for vendor_id in vendor_ids
        }
        done, pending = await asyncio.wait(tasks.values(), timeout=timeout)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        shares, unverified = {}, []
        for vendor_id, task in tasks.items():
            if task not in done:
                logger.warning("suborder_lookup_timed_out", vendor_id=vendor_id)
                unverified.append(vendor_id)
            elif task.exception() is not None:
                logger.warning("suborder_lookup_failed", vendor_id=vendor_id, error=str(task.exception()))
                unverified.append(vendor_id)
            elif task.result() is not None:
                shares[vendor_id] = task.result().delivery_fee_share
        if shares:
            logger.info("suborders_already_stored", submission_id=submission_id, vendor_ids=sorted(shares))
        return Settlement(shares, unverified)

    async def write_all(
        self,
        sub_orders: Sequence[SubOrderDraft],
        submission_id: str,
        timeout: float | None = None,
        held: Mapping[str, str] | None = None,
    ) -> List[WriteOutcome]:
        """One outcome per sub-order, in input order.

        Writes still in flight at the timeout are cancelled and reported as
        failed for that group only. The store may have committed one anyway;
        the idempotency key makes a resubmitted checkout pick that row up
        instead of writing a second one.

        held maps vendor ids to a reason; those groups are reported as failed
        without being written.
        """
        if not sub_orders:
            return []

        held = held or {}
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def write_one(index: int, sub_order: SubOrderDraft) -> WriteOutcome:
            key = idempotency_key(sub_order.user_id, submission_id, sub_order.vendor_id)
            async with semaphore:
                try:
                    stored = await self.store.insert(sub_order, key)
                except Exception as e:
                    logger.warning("suborder_write_failed", vendor_id=sub_order.vendor_id, error=str(e))
                    ecomm_suborder_writes_total.labels(outcome="failed").inc()
                    return WriteOutcome(index, sub_order, success=False, error=str(e) or e.__class__.__name__)
            outcome = "replayed" if stored.replayed else "written"
            logger.info(f"suborder_{outcome}", vendor_id=sub_order.vendor_id, order_id=stored.order_id)
            ecomm_suborder_writes_total.labels(outcome=outcome).inc()
            return WriteOutcome(index, sub_order, success=True, order_id=stored.order_id, replayed=stored.replayed)

        tasks = {
            index: asyncio.create_task(write_one(index, sub_order))
            for index, sub_order in enumerate(sub_orders)
            if sub_order.vendor_id not in held
        }
        done, pending = set(), set()
        if tasks:
            done, pending = await asyncio.wait(tasks.values(), timeout=timeout)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        outcomes = []
        for index, sub_order in enumerate(sub_orders):
            task = tasks.get(index)
            if task is None:
                logger.warning("suborder_write_held", vendor_id=sub_order.vendor_id, reason=held[sub_order.vendor_id])
                ecomm_suborder_writes_total.labels(outcome="held").inc()
                outcomes.append(WriteOutcome(index, sub_order, success=False, error=held[sub_order.vendor_id]))
            elif task in done:
                outcomes.append(task.result())
            else:
                logger.warning("suborder_write_timed_out", vendor_id=sub_order.vendor_id)
                ecomm_suborder_writes_total.labels(outcome="timed_out").inc()
                outcomes.append(WriteOutcome(index, sub_order, success=False, error="deadline exceeded"))
        return outcomes


class NotificationDispatcher:
    """Fire-and-forget vendor alerts for sub-orders that were persisted.

    Each alert runs as its own task, retried with exponential backoff up to
    max_attempts. An alert the notifier rejects outright is not retried. Failures are logged and counted, never raised: the order
    already exists by the time we get here.
    """

    def __init__(self, notifier: VendorNotifier, max_attempts: int = 3, backoff_seconds: float = 0.5):
        self.notifier = notifier
        self.max_attempts = max(1, max_attempts)
        self.backoff_seconds = backoff_seconds
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def dispatch(self, outcomes: Sequence[WriteOutcome], customer_name: str) -> None:
        for outcome in outcomes:
            if not outcome.success:
                continue
            task = asyncio.create_task(self._notify(outcome, customer_name))
            self._tasks.add(task)
            ecomm_pending_notifications.inc()
            task.add_done_callback(self._forget)

    def _forget(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        ecomm_pending_notifications.dec()

    async def _notify(self, outcome: WriteOutcome, customer_name: str) -> bool:
        sub_order = outcome.sub_order
        for attempt in range(1, self.max_attempts + 1):
            try:
                await self.notifier.notify(
                    vendor_id=sub_order.vendor_id,
                    order_id=outcome.order_id,
                    order_number=order_number_for(outcome.order_id),
                    customer_name=customer_name,
                    total_amount=sub_order.total_amount,
                    item_count=len(sub_order.items),
                )
            except NotifyRejected as e:
                logger.warning(
                    "vendor_notification_rejected",
                    vendor_id=sub_order.vendor_id,
                    order_id=outcome.order_id,
                    error=str(e),
                )
                ecomm_vendor_notifications_total.labels(outcome="rejected").inc()
                return False
            except Exception as e:
                logger.warning(
                    "vendor_notification_failed",
                    vendor_id=sub_order.vendor_id,
                    order_id=outcome.order_id,
                    attempt=attempt,
                    error=str(e),
                )
                if attempt < self.max_attempts:
                    ecomm_vendor_notifications_total.labels(outcome="retried").inc()
                    await asyncio.sleep(self.backoff_seconds * 2 ** (attempt - 1))
                continue
            logger.info("vendor_notified", vendor_id=sub_order.vendor_id, order_id=outcome.order_id, attempt=attempt)
            ecomm_vendor_notifications_total.labels(outcome="sent").inc()
            return True

        logger.error("vendor_notification_abandoned", vendor_id=sub_order.vendor_id, order_id=outcome.order_id)
        ecomm_vendor_notifications_total.labels(outcome="abandoned").inc()
        return False

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for in-flight notifications (graceful shutdown, tests)."""
        if self._tasks:
            await asyncio.wait(set(self._tasks), timeout=timeout)


def aggregate_results(outcomes: Sequence[WriteOutcome], unresolved: Sequence[UnresolvedItem] = ()) -> FulfillmentResult:
    """Primary id = first written group in cart order, independent of which write finished first."""
    ordered = sorted(outcomes, key=lambda o: o.index)
    written = [o for o in ordered if o.success]
    errors = [PartitionError(vendor_id=o.vendor_id, reason=o.error or "unknown error") for o in ordered if not o.success]

    if not written:
        raise AllWritesFailed(errors)

    return FulfillmentResult(
        primary_order_id=written[0].order_id,
        order_count=len(written),
        all_order_ids=[o.order_id for o in written],
        partition_errors=errors,
        unresolved_items=list(unresolved),
    )
