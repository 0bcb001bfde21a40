from .setup import setup_observability
from .metrics import (
    ecomm_checkout_total,
    ecomm_checkout_duration_seconds,
    ecomm_stock_rejections_total,
    ecomm_reviews_total,
)
