from prometheus_client import Counter, Histogram

# Business Metrics
ecomm_checkout_total = Counter(
    "ecomm_checkout_total",
    "Total order submissions processed",
    ["status"] # Labels: 'success', 'empty_cart', 'insufficient_stock', 'invalid', 'failed'
)

ecomm_checkout_duration_seconds = Histogram(
    "ecomm_checkout_duration_seconds",
    "Order submission duration in seconds"
)

ecomm_stock_rejections_total = Counter(
    "ecomm_stock_rejections_total",
    "Orders rejected because a product did not have enough stock",
    ["product_id"]
)

ecomm_reviews_total = Counter(
    "ecomm_reviews_total",
    "Total product reviews submitted"
)
