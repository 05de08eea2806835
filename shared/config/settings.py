import os
from decimal import Decimal
from dotenv import load_dotenv

load_dotenv()

# Service discovery (docker-compose service names in production)
PRODUCT_URL = os.getenv("PRODUCT_URL", "http://localhost:8000/products")
ORDER_URL = os.getenv("ORDER_URL", "http://localhost:8000/orders")
NOTIFICATION_URL = os.getenv("NOTIFICATION_URL", "http://localhost:8000/notifications")

HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10"))

# Checkout fan-out tuning
CHECKOUT_DEADLINE_SECONDS = float(os.getenv("CHECKOUT_DEADLINE_SECONDS", "15"))
WRITE_CONCURRENCY = int(os.getenv("WRITE_CONCURRENCY", "4"))
NOTIFY_MAX_ATTEMPTS = int(os.getenv("NOTIFY_MAX_ATTEMPTS", "3"))
NOTIFY_BACKOFF_SECONDS = float(os.getenv("NOTIFY_BACKOFF_SECONDS", "0.5"))
NOTIFY_DRAIN_SECONDS = float(os.getenv("NOTIFY_DRAIN_SECONDS", "5"))

# Flat delivery fee per checkout, by the option the customer picked
DELIVERY_FEES = {
    "standard": Decimal(os.getenv("STANDARD_DELIVERY_FEE", "40")),
    "express": Decimal(os.getenv("EXPRESS_DELIVERY_FEE", "60")),
}

# Push channel used by the notification service: "webhook" or "fake" (tests, local runs)
PUSH_BACKEND = os.getenv("PUSH_BACKEND", "webhook")
PUSH_WEBHOOK_URL = os.getenv("PUSH_WEBHOOK_URL", "")

OTEL_ENABLED = os.getenv("OTEL_ENABLED", "true").lower() == "true"
METRICS_ENABLED = os.getenv("METRICS_ENABLED", "true").lower() == "true"
