import uuid
from sqlalchemy import Column, Integer, String, Numeric
from shared.config.database import Base, schema_args

class Product(Base):
    __tablename__ = "products"
    __table_args__ = schema_args("product_schema")

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    # Owning vendor; products imported without one cannot be routed to a vendor at checkout
    vendor_id = Column(String, nullable=True, index=True)
    status = Column(String, default="active") # active, out_of_stock, deleted
