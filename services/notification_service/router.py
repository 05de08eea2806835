"""
Every notification route requires X-Internal-API-Key: only the checkout engine,
running server-side, may trigger a vendor alert. A browser cannot forge one.
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.security.dependencies import verify_internal_api_key

from .channel import PushPort, get_push_channel
from .schemas import DeviceTokenRegister, DeviceTokenResponse, NotificationResponse, VendorOrderNotification
from .service import NotificationService, PushDeliveryFailed, VendorTokenNotFound

router = APIRouter(dependencies=[Depends(verify_internal_api_key)])
public_router = APIRouter()  # For any public endpoints (e.g. health check)

@public_router.get("/health", include_in_schema=False)
async def health_check():
    return {"service": "notification", "status": "running"}


@router.post("/tokens", response_model=DeviceTokenResponse)
async def register_token(data: DeviceTokenRegister, db: AsyncSession = Depends(get_db)):
    return await NotificationService.register_token(db, data)


@router.post("/vendor-orders", response_model=NotificationResponse)
async def notify_vendor(
    data: VendorOrderNotification,
    db: AsyncSession = Depends(get_db),
    channel: PushPort = Depends(get_push_channel),
):
    try:
        return await NotificationService.notify_vendor(db, data, channel)
    except VendorTokenNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PushDeliveryFailed as e:
        raise HTTPException(status_code=502, detail=f"Failed to send notification: {e}")
