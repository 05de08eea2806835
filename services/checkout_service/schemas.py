import re
import uuid
from decimal import Decimal
from enum import Enum
from typing import List
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from shared.config.settings import DELIVERY_FEES

PHONE_PATTERN = re.compile(r"^\d{10}$")


class PaymentMethod(str, Enum):
    COD = "cod"
    ONLINE = "online"

class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"

class OrderStatus(str, Enum):
    # pending -> confirmed -> preparing -> ready -> out_for_delivery -> delivered,
    # or pending|confirmed -> cancelled. Checkout only ever creates PENDING.
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

class DeliveryOption(str, Enum):
    STANDARD = "standard"
    EXPRESS = "express"


class CartLineItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: str = Field(min_length=1)
    name: str
    unit_price: Decimal = Field(ge=0, decimal_places=2)
    quantity: int = Field(gt=0)

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


class Address(BaseModel):
    name: str
    phone: str
    pincode: str
    city: str
    address_text: str

    @field_validator("name")
    @classmethod
    def name_required(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Please enter your name.")
        return v.strip()

    @field_validator("phone")
    @classmethod
    def ten_digit_phone(cls, v: str) -> str:
        v = v.strip()
        if not PHONE_PATTERN.match(v):
            raise ValueError("Please enter a valid 10-digit mobile number.")
        return v


class Cart(BaseModel):
    user_id: str = Field(min_length=1)
    items: List[CartLineItem] = Field(min_length=1)
    delivery_option: DeliveryOption = DeliveryOption.STANDARD
    # Flat fee for the whole checkout; derived from delivery_option when omitted
    delivery_fee: Decimal | None = Field(default=None, ge=0, decimal_places=2)
    payment_method: PaymentMethod
    address: Address
    # Vendor to bill when no item can be routed through the catalog
    vendor_id: str | None = None
    # Stable per checkout attempt; resubmitting with the same id never duplicates a vendor's order
    submission_id: str = Field(default_factory=lambda: uuid.uuid4().hex, min_length=1)

    @model_validator(mode="after")
    def default_delivery_fee(self):
        if self.delivery_fee is None:
            self.delivery_fee = DELIVERY_FEES[self.delivery_option.value]
        return self


class SubOrderDraft(BaseModel):
    """A vendor group's order before the store assigns it an id."""
    user_id: str
    vendor_id: str
    items: List[CartLineItem]
    subtotal: Decimal
    delivery_fee_share: Decimal
    total_amount: Decimal
    payment_method: PaymentMethod
    payment_status: PaymentStatus = PaymentStatus.PENDING
    order_status: OrderStatus = OrderStatus.PENDING
    address: Address


class UnresolvedItem(BaseModel):
    product_id: str
    name: str
    reason: str

class PartitionError(BaseModel):
    vendor_id: str
    reason: str

class FulfillmentResult(BaseModel):
    primary_order_id: str
    order_count: int = Field(ge=1)
    all_order_ids: List[str]
    partition_errors: List[PartitionError] = []
    # Items silently left out of every order; surfaced so the storefront can decide what to tell the customer
    unresolved_items: List[UnresolvedItem] = []

class CheckoutResponse(FulfillmentResult):
    message: str
