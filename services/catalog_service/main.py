from fastapi import FastAPI
from shared.config.database import engine, Base, create_schema
from shared.observability import setup_observability
from .router import router, public_router
from .models import Product # Import to register with Base

catalog_app = FastAPI(
    title="Catalog Service",
    version="1.0.0"
)

# --- OBSERVABILITY BOOTSTRAP ---
setup_observability(catalog_app, "catalog_service")

catalog_app.include_router(public_router)
catalog_app.include_router(router)

@catalog_app.on_event("startup")
async def startup_event():
    async with engine.begin() as conn:
        await create_schema(conn, "product_schema")
        await conn.run_sync(Base.metadata.create_all)
