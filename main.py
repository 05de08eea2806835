from fastapi import FastAPI
from shared.config.database import engine, Base, create_schema

# IMPORTANT: import models so they register with Base
from services.catalog_service import models as catalog_models
from services.order_service import models as order_models
from services.notification_service import models as notification_models

from services.catalog_service.main import catalog_app
from services.order_service.main import order_app
from services.notification_service.channel import get_push_channel
from services.notification_service.main import notification_app
from services.checkout_service.main import checkout_app, start_checkout_service, stop_checkout_service

app = FastAPI(title="Vendor Checkout Cluster")

@app.on_event("startup")
async def startup_event():
    async with engine.begin() as conn:
        # Create schemas
        await create_schema(conn, "product_schema")
        await create_schema(conn, "order_schema")
        await create_schema(conn, "notification_schema")

        # Create all tables
        await conn.run_sync(Base.metadata.create_all)

    # Refuse to boot with a misconfigured push backend
    get_push_channel()

    await start_checkout_service(checkout_app)

@app.on_event("shutdown")
async def shutdown_event():
    await stop_checkout_service(checkout_app)

app.mount("/products", catalog_app)
app.mount("/orders", order_app)
app.mount("/notifications", notification_app)
app.mount("/checkout", checkout_app)
