from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from .models import NotificationLog, VendorDeviceToken

# Token lookup order: browser dashboard first, then the vendor mobile app
TOKEN_PLATFORMS = ("web", "mobile")

class NotificationRepository:
    @staticmethod
    async def get_token(db: AsyncSession, vendor_id: str, platform: str):
        result = await db.execute(
            select(VendorDeviceToken)
            .where(VendorDeviceToken.vendor_id == vendor_id)
            .where(VendorDeviceToken.platform == platform)
        )
        return result.scalars().first()

    @staticmethod
    async def find_active_token(db: AsyncSession, vendor_id: str):
        for platform in TOKEN_PLATFORMS:
            token = await NotificationRepository.get_token(db, vendor_id, platform)
            if token and token.active and token.token:
                return token
        return None

    @staticmethod
    async def save_token(db: AsyncSession, token: VendorDeviceToken):
        db.add(token)
        await db.commit()
        await db.refresh(token)
        return token

    @staticmethod
    async def get_sent_log(db: AsyncSession, order_id: str):
        result = await db.execute(
            select(NotificationLog)
            .where(NotificationLog.order_id == order_id)
            .where(NotificationLog.status == "sent")
        )
        return result.scalars().first()

    @staticmethod
    async def add_log(db: AsyncSession, log: NotificationLog):
        db.add(log)
        await db.commit()
        await db.refresh(log)
        return log
