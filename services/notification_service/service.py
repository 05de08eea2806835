from datetime import datetime, timezone
import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from .channel import PushPort
from .models import NotificationLog, VendorDeviceToken
from .repository import NotificationRepository
from .schemas import DeviceTokenRegister, NotificationResponse, VendorOrderNotification

logger = structlog.get_logger(__name__)

NEW_ORDER_TITLE = "New Order Received! 🎉"


class VendorTokenNotFound(LookupError):
    pass


class PushDeliveryFailed(Exception):
    pass


def build_new_order_push(data: VendorOrderNotification) -> tuple[str, str, dict]:
    """Title, body and data payload of the vendor's new-order alert."""
    if data.item_count is not None:
        details = f"{data.item_count} items, ₹{data.total_amount}"
    else:
        details = f"₹{data.total_amount}"
    body = f"{data.customer_name} placed order #{data.order_number} ({details})"
    payload = {
        "orderId": data.order_id,
        "vendorId": data.vendor_id,
        "orderNumber": data.order_number,
        "customerName": data.customer_name,
        "totalAmount": str(data.total_amount),
        "itemCount": str(data.item_count if data.item_count is not None else ""),
        "url": f"/vendor/orders/{data.order_id}",
        "type": "new_order",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    return NEW_ORDER_TITLE, body, payload


class NotificationService:
    @staticmethod
    async def register_token(db: AsyncSession, data: DeviceTokenRegister):
        token = await NotificationRepository.get_token(db, data.vendor_id, data.platform)
        if token is None:
            token = VendorDeviceToken(vendor_id=data.vendor_id, platform=data.platform)
        token.token = data.token
        token.active = True
        return await NotificationRepository.save_token(db, token)

    @staticmethod
    async def notify_vendor(db: AsyncSession, data: VendorOrderNotification, channel: PushPort):
        # Checkout retries may repeat a request that already got through
        previous = await NotificationRepository.get_sent_log(db, data.order_id)
        if previous:
            logger.info("vendor_notification_duplicate", order_id=data.order_id, vendor_id=data.vendor_id)
            return NotificationResponse(
                success=True,
                message_id=previous.message_id,
                order_id=data.order_id,
                vendor_id=data.vendor_id,
                sent_at=previous.created_at,
                duplicate=True,
            )

        token = await NotificationRepository.find_active_token(db, data.vendor_id)
        if token is None:
            logger.warning("vendor_token_missing", vendor_id=data.vendor_id, order_id=data.order_id)
            raise VendorTokenNotFound(f"No active device token for vendor {data.vendor_id}")

        title, body, payload = build_new_order_push(data)
        result = await channel.send(token.token, title, body, payload)

        if result.get("status") != "sent":
            error = result.get("error") or "Push delivery failed"
            await NotificationRepository.add_log(db, NotificationLog(
                order_id=data.order_id, vendor_id=data.vendor_id, status="failed", error=error,
            ))
            logger.warning("vendor_push_failed", vendor_id=data.vendor_id, order_id=data.order_id, error=error)
            raise PushDeliveryFailed(error)

        log = await NotificationRepository.add_log(db, NotificationLog(
            order_id=data.order_id, vendor_id=data.vendor_id, status="sent", message_id=result.get("message_id"),
        ))
        logger.info("vendor_push_sent", vendor_id=data.vendor_id, order_id=data.order_id, message_id=log.message_id)
        return NotificationResponse(
            success=True,
            message_id=log.message_id,
            order_id=data.order_id,
            vendor_id=data.vendor_id,
            sent_at=log.created_at,
        )
