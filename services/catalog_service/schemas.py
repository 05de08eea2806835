from decimal import Decimal
from pydantic import BaseModel, Field

class ProductCreate(BaseModel):
    name: str = Field(min_length=1)
    price: Decimal = Field(ge=0, decimal_places=2)
    stock: int = Field(default=0, ge=0)
    vendor_id: str | None = None

class ProductResponse(BaseModel):
    id: str
    name: str
    price: Decimal
    stock: int
    vendor_id: str | None
    status: str

    class Config:
        from_attributes = True
