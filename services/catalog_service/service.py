from sqlalchemy.ext.asyncio import AsyncSession
from .models import Product
from .repository import ProductRepository
from .schemas import ProductCreate

class ProductService:

    @staticmethod
    async def create_product(db: AsyncSession, data: ProductCreate):
        product = Product(
            name=data.name,
            price=data.price,
            stock=data.stock,
            vendor_id=data.vendor_id,
            status="active" if data.stock > 0 else "out_of_stock",
        )
        return await ProductRepository.create_product(db, product)

    @staticmethod
    async def list_products(db: AsyncSession, vendor_id: str | None = None):
        return await ProductRepository.get_products(db, vendor_id)

    @staticmethod
    async def get_product_by_id(db: AsyncSession, product_id: str):
        return await ProductRepository.get_product_by_id(db, product_id)
