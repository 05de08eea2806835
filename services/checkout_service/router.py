from fastapi import APIRouter, Depends, HTTPException, Request, status
from shared.security.dependencies import verify_internal_api_key
from .errors import AllWritesFailed, NoVendorResolvable
from .schemas import Cart, CheckoutResponse
from .service import RETRY_MESSAGE, UNAVAILABLE_MESSAGE, CheckoutService

# Called by the storefront backend, never directly by browsers
router = APIRouter(dependencies=[Depends(verify_internal_api_key)])
public_router = APIRouter()

@public_router.get("/health")
async def health_check():
    return {"service": "checkout", "status": "running"}


def get_checkout_service(request: Request) -> CheckoutService:
    return request.app.state.checkout_service


@router.post("/", response_model=CheckoutResponse, status_code=status.HTTP_201_CREATED)
async def create_order(cart: Cart, service: CheckoutService = Depends(get_checkout_service)):
    try:
        return await service.checkout(cart)
    except NoVendorResolvable as e:
        # The cart itself has to change; 422 stays reserved for malformed request bodies
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"error": "no_vendor_resolvable", "reason": str(e), "message": UNAVAILABLE_MESSAGE},
        )
    except AllWritesFailed as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={
                "error": "all_writes_failed",
                "partition_errors": [pe.model_dump() for pe in e.partition_errors],
                "message": RETRY_MESSAGE,
            },
        )
