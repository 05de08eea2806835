from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from .models import SubOrder

class OrderRepository:
    @staticmethod
    async def create_order(db: AsyncSession, order: SubOrder):
        db.add(order)
        await db.commit()
        await db.refresh(order)
        return order

    @staticmethod
    async def get_order(db: AsyncSession, order_id: str):
        result = await db.execute(select(SubOrder).where(SubOrder.id == order_id))
        return result.scalars().first()

    @staticmethod
    async def get_by_idempotency_key(db: AsyncSession, idempotency_key: str):
        result = await db.execute(
            select(SubOrder).where(SubOrder.idempotency_key == idempotency_key)
        )
        return result.scalars().first()

    @staticmethod
    async def list_orders_for_user(db: AsyncSession, user_id: str):
        result = await db.execute(
            select(SubOrder)
            .where(SubOrder.user_id == user_id)
            .order_by(SubOrder.created_at.desc())
        )
        return result.scalars().all()
