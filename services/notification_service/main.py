from fastapi import FastAPI

from shared.config.database import Base, create_schema, engine
from shared.observability import setup_observability

from .models import NotificationLog, VendorDeviceToken # Import to register with Base
from .channel import get_push_channel
from .router import router, public_router


notification_app = FastAPI(title="Notification Service", version="1.0.0")

setup_observability(notification_app, "notification_service")

notification_app.include_router(router)
notification_app.include_router(public_router)

@notification_app.on_event("startup")
async def startup_event():
    async with engine.begin() as conn:
        await create_schema(conn, "notification_schema")
        await conn.run_sync(Base.metadata.create_all)

    # Fail on boot, not on the first vendor alert, when the push backend is misconfigured
    get_push_channel()
