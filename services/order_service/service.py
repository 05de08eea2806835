import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from .models import SubOrder
from .repository import OrderRepository
from .schemas import SubOrderCreate

logger = structlog.get_logger(__name__)

_REPLAY_FIELDS = ("user_id", "vendor_id", "subtotal", "delivery_fee_share", "total_amount")


class IdempotencyConflict(Exception):
    """The key was already used for a sub-order with different amounts."""


def _check_replay(existing: SubOrder, data: SubOrderCreate):
    mismatched = [f for f in _REPLAY_FIELDS if getattr(existing, f) != getattr(data, f)]
    if mismatched:
        logger.warning("suborder_replay_conflict", order_id=existing.id, fields=mismatched)
        raise IdempotencyConflict(
            f"Idempotency key already used for order {existing.id} with different {', '.join(mismatched)}"
        )


class OrderService:
    @staticmethod
    async def create_order(db: AsyncSession, data: SubOrderCreate, idempotency_key: str | None = None):
        """Persist a sub-order. Returns (order, created).

        A key that was already used returns the original row with created=False,
        so a caller retrying a partially failed checkout never duplicates a vendor's order.
        Replaying a key with different amounts raises IdempotencyConflict.
        """
        if idempotency_key:
            existing = await OrderRepository.get_by_idempotency_key(db, idempotency_key)
            if existing:
                _check_replay(existing, data)
                logger.info("suborder_replayed", order_id=existing.id, vendor_id=existing.vendor_id)
                return existing, False

        subtotal = sum((item.unit_price * item.quantity for item in data.items), start=0)
        if subtotal != data.subtotal:
            raise ValueError(f"Subtotal {data.subtotal} does not match line items ({subtotal})")
        if data.subtotal + data.delivery_fee_share != data.total_amount:
            raise ValueError("Total amount must equal subtotal plus delivery fee share")

        order = SubOrder(
            idempotency_key=idempotency_key,
            user_id=data.user_id,
            vendor_id=data.vendor_id,
            items=[item.model_dump(mode="json") for item in data.items],
            subtotal=data.subtotal,
            delivery_fee_share=data.delivery_fee_share,
            total_amount=data.total_amount,
            payment_method=data.payment_method,
            payment_status=data.payment_status,
            order_status=data.order_status,
            address=data.address.model_dump(),
        )
        try:
            order = await OrderRepository.create_order(db, order)
        except IntegrityError:
            # Lost a race against a concurrent request carrying the same key
            await db.rollback()
            existing = await OrderRepository.get_by_idempotency_key(db, idempotency_key) if idempotency_key else None
            if existing is None:
                raise
            _check_replay(existing, data)
            return existing, False

        logger.info("suborder_created", order_id=order.id, vendor_id=order.vendor_id, total_amount=str(order.total_amount))
        return order, True

    @staticmethod
    async def get_order(db: AsyncSession, order_id: str):
        return await OrderRepository.get_order(db, order_id)

    @staticmethod
    async def get_by_idempotency_key(db: AsyncSession, idempotency_key: str):
        return await OrderRepository.get_by_idempotency_key(db, idempotency_key)

    @staticmethod
    async def list_orders_for_user(db: AsyncSession, user_id: str):
        return await OrderRepository.list_orders_for_user(db, user_id)
