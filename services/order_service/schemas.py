from datetime import datetime
from decimal import Decimal
from typing import List, Literal
from pydantic import BaseModel, Field

class OrderItem(BaseModel):
    product_id: str
    name: str
    unit_price: Decimal = Field(ge=0)
    quantity: int = Field(gt=0)

class OrderAddress(BaseModel):
    name: str
    phone: str
    pincode: str
    city: str
    address_text: str

class SubOrderCreate(BaseModel):
    user_id: str
    vendor_id: str
    items: List[OrderItem] = Field(min_length=1)
    subtotal: Decimal = Field(ge=0)
    delivery_fee_share: Decimal = Field(ge=0)
    total_amount: Decimal = Field(ge=0)
    payment_method: Literal["cod", "online"]
    payment_status: Literal["pending", "paid", "failed"] = "pending"
    order_status: Literal["pending"] = "pending" # only the initial state is ever created here
    address: OrderAddress

class SubOrderResponse(BaseModel):
    id: str
    user_id: str
    vendor_id: str
    items: List[OrderItem]
    subtotal: Decimal
    delivery_fee_share: Decimal
    total_amount: Decimal
    payment_method: str
    payment_status: str
    order_status: str
    address: OrderAddress
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True
