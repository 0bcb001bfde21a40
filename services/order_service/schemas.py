from datetime import datetime
from typing import List

from pydantic import BaseModel

from shared.money import Money

ORDER_STATUS_PENDING = "Pending"

PAYMENT_METHODS = ("Credit Card", "Debit Card", "PayPal", "Cash on Delivery")


class OrderCreate(BaseModel):
    shipping_address: str
    payment_method: str


class OrderItemResponse(BaseModel):
    product_id: int
    name: str
    image_url: str
    quantity: int
    price: Money

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    id: int
    user_id: str
    items: List[OrderItemResponse] = []
    total_amount: Money
    shipping_address: str
    payment_method: str
    status: str
    created_at: datetime

    class Config:
        from_attributes = True
