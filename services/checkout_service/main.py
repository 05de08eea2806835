from fastapi import FastAPI
from shared.observability import setup_observability
from .router import router, public_router
from .service import CheckoutService

checkout_app = FastAPI(
    title="Checkout Service",
    version="1.0.0"
)

# --- OBSERVABILITY BOOTSTRAP ---
setup_observability(checkout_app, "checkout_service")

checkout_app.include_router(public_router)
checkout_app.include_router(router)


async def start_checkout_service(app: FastAPI):
    if getattr(app.state, "checkout_service", None) is None:
        app.state.checkout_service = CheckoutService.over_http()


async def stop_checkout_service(app: FastAPI):
    service = getattr(app.state, "checkout_service", None)
    if service is not None:
        await service.close()
        app.state.checkout_service = None


# Mounted sub-apps don't receive lifespan events; the cluster app in main.py calls these too
@checkout_app.on_event("startup")
async def startup_event():
    await start_checkout_service(checkout_app)

@checkout_app.on_event("shutdown")
async def shutdown_event():
    await stop_checkout_service(checkout_app)
