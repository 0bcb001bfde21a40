from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
from shared.config.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    total_amount = Column(Numeric(12, 2), nullable=False) # calculated at creation
    shipping_address = Column(Text, nullable=False)
    payment_method = Column(String(32), nullable=False)
    status = Column(String(32), nullable=False, default="Pending")
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    items = relationship(
        "OrderItem", back_populates="order", lazy="selectin", order_by="OrderItem.id"
    )


class OrderItem(Base):
    """Snapshot of a cart line at order time. product_id is deliberately not a foreign key."""
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(Integer, nullable=False)
    name = Column(String(255), nullable=False)
    image_url = Column(String(1024), nullable=False, default="")
    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False) # unit price at order time

    order = relationship("Order", back_populates="items")
