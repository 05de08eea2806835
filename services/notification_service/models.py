import uuid
from sqlalchemy import Boolean, Column, DateTime, Integer, String, UniqueConstraint, func
from shared.config.database import Base, schema_args

_SCHEMA = schema_args("notification_schema")

class VendorDeviceToken(Base):
    __tablename__ = "vendor_device_tokens"
    __table_args__ = (UniqueConstraint("vendor_id", "platform"), _SCHEMA)

    id = Column(Integer, primary_key=True, index=True)
    vendor_id = Column(String, nullable=False, index=True)
    platform = Column(String, nullable=False) # web, mobile
    token = Column(String, nullable=False)
    active = Column(Boolean, default=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

class NotificationLog(Base):
    """One row per push attempt; a 'sent' row makes later requests for the same order a no-op."""
    __tablename__ = "notification_log"
    __table_args__ = _SCHEMA

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    order_id = Column(String, nullable=False, index=True)
    vendor_id = Column(String, nullable=False, index=True)
    status = Column(String, nullable=False) # sent, failed
    message_id = Column(String, nullable=True)
    error = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
