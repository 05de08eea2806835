import uuid
from sqlalchemy import Column, DateTime, JSON, Numeric, String, func
from shared.config.database import Base, schema_args

class SubOrder(Base):
    """One vendor's share of a customer checkout."""
    __tablename__ = "orders"
    # We use a separate schema to simulate microservice isolation
    __table_args__ = schema_args("order_schema")

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # sha256(user_id:submission_id:vendor_id); a replayed checkout maps onto the same row
    idempotency_key = Column(String(64), unique=True, nullable=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    vendor_id = Column(String, nullable=False, index=True)
    items = Column(JSON, nullable=False)
    subtotal = Column(Numeric(12, 2), nullable=False)
    delivery_fee_share = Column(Numeric(12, 2), nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)
    payment_method = Column(String, nullable=False) # cod, online
    payment_status = Column(String, default="pending") # pending, paid, failed
    order_status = Column(String, default="pending") # pending, confirmed, preparing, ready, out_for_delivery, delivered, cancelled
    address = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
