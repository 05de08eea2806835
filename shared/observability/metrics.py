from prometheus_client import Counter, Histogram, Gauge

# Business Metrics
ecomm_checkout_total = Counter(
    "ecomm_checkout_total",
    "Total checkouts processed",
    ["status"] # Labels: 'success', 'partial', 'failed'
)

ecomm_checkout_duration_seconds = Histogram(
    "ecomm_checkout_duration_seconds",
    "Checkout duration in seconds (resolution through persistence, excludes notifications)"
)

ecomm_suborder_writes_total = Counter(
    "ecomm_suborder_writes_total",
    "Per-vendor sub-order write attempts",
    ["outcome"] # Labels: 'written', 'failed', 'timed_out'
)

ecomm_vendor_notifications_total = Counter(
    "ecomm_vendor_notifications_total",
    "Vendor notification attempts",
    ["outcome"] # Labels: 'sent', 'retried', 'abandoned'
)

ecomm_unresolved_items_total = Counter(
    "ecomm_unresolved_items_total",
    "Cart items dropped because no owning vendor could be resolved"
)

ecomm_pending_notifications = Gauge(
    "ecomm_pending_notifications",
    "Vendor notifications dispatched but not yet finished"
)
