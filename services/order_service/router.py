from fastapi import APIRouter, Depends, Header, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from shared.config.database import get_db
from shared.security.dependencies import verify_internal_api_key
from .schemas import SubOrderCreate, SubOrderResponse
from .service import IdempotencyConflict, OrderService

# THIS PROTECTS THE ENTIRE SERVICE
router = APIRouter(dependencies=[Depends(verify_internal_api_key)])
public_router = APIRouter()  # For any public endpoints (e.g. health check)

@public_router.get("/health")
async def health_check():
    return {"service": "order", "status": "running"}

@router.post("/", response_model=SubOrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    order: SubOrderCreate,
    response: Response,
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key"),
    db: AsyncSession = Depends(get_db),
):
    try:
        created_order, created = await OrderService.create_order(db, order, idempotency_key)
    except IdempotencyConflict as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not created:
        response.status_code = status.HTTP_200_OK
    return created_order

@router.get("/", response_model=list[SubOrderResponse])
async def list_orders(user_id: str = Query(...), db: AsyncSession = Depends(get_db)):
    return await OrderService.list_orders_for_user(db, user_id)

@router.get("/by-key/{idempotency_key}", response_model=SubOrderResponse)
async def get_order_by_key(idempotency_key: str, db: AsyncSession = Depends(get_db)):
    order = await OrderService.get_by_idempotency_key(db, idempotency_key)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order

@router.get("/{order_id}", response_model=SubOrderResponse)
async def get_order(order_id: str, db: AsyncSession = Depends(get_db)):
    order = await OrderService.get_order(db, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order
