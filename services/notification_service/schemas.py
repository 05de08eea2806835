from datetime import datetime
from decimal import Decimal
from typing import Literal
from pydantic import BaseModel, Field

class VendorOrderNotification(BaseModel):
    vendor_id: str = Field(min_length=1)
    order_id: str = Field(min_length=1)
    order_number: str
    customer_name: str = "Unknown Customer"
    total_amount: Decimal = Decimal("0")
    item_count: int | None = None

class NotificationResponse(BaseModel):
    success: bool
    message_id: str | None
    order_id: str
    vendor_id: str
    sent_at: datetime | None
    duplicate: bool = False

class DeviceTokenRegister(BaseModel):
    vendor_id: str = Field(min_length=1)
    platform: Literal["web", "mobile"] = "web"
    token: str = Field(min_length=1)

class DeviceTokenResponse(BaseModel):
    vendor_id: str
    platform: str
    active: bool

    class Config:
        from_attributes = True
