from .setup import setup_observability
from .metrics import (
    ecomm_checkout_total,
    ecomm_checkout_duration_seconds,
    ecomm_suborder_writes_total,
    ecomm_vendor_notifications_total,
    ecomm_unresolved_items_total,
    ecomm_pending_notifications
)
