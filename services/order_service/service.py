"""
Order placement: turns a user's cart into an immutable order.

Everything from reading the cart to decrementing stock happens in one
database transaction, and submissions for the same user are serialized by an
in-process lock. A failure at any step leaves the cart, the stock and the
order table exactly as they were.
"""
import time
from decimal import Decimal
from typing import Iterable, Sequence

import structlog
from opentelemetry import trace
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shared.concurrency import KeyedLock
from shared.exceptions import (
    EmptyCartError,
    InsufficientStockError,
    NotFoundError,
    StorageError,
    StorefrontError,
    ValidationError,
)
from shared.money import to_money
from shared.observability import (
    ecomm_checkout_duration_seconds,
    ecomm_checkout_total,
    ecomm_stock_rejections_total,
)
from services.cart_service.models import CartItem
from services.cart_service.repository import CartRepository
from services.product_service.repository import ProductRepository

from .models import Order, OrderItem
from .repository import OrderRepository
from .schemas import ORDER_STATUS_PENDING, PAYMENT_METHODS

logger = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)

# Application-layer lock so one user cannot run two checkouts at once
submission_locks = KeyedLock()


def validate_checkout(shipping_address: str, payment_method: str) -> str:
    """Returns the normalized shipping address or raises ValidationError."""
    address = (shipping_address or "").strip()
    if not address:
        raise ValidationError("Please enter a shipping address")
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError(
            f"Unsupported payment method '{payment_method}'. Choose one of: {', '.join(PAYMENT_METHODS)}"
        )
    return address


def build_order_lines(cart_items: Iterable[CartItem]) -> list[OrderItem]:
    """Snapshot each cart line with the product's current name, image and price."""
    lines = []
    for item in cart_items:
        product = item.product
        if product is None:
            raise NotFoundError(f"Product {item.product_id} is no longer available")
        lines.append(
            OrderItem(
                product_id=product.id,
                name=product.name,
                image_url=product.image_url or "",
                quantity=item.quantity,
                price=to_money(product.price),
            )
        )
    return lines


def compute_total(lines: Sequence[OrderItem]) -> Decimal:
    return to_money(sum((line.price * line.quantity for line in lines), Decimal("0")))


def _check_stock(cart_items: Sequence[CartItem]) -> None:
    for item in cart_items:
        if item.product.stock < item.quantity:
            ecomm_stock_rejections_total.labels(product_id=str(item.product_id)).inc()
            raise InsufficientStockError(
                f"Insufficient stock for {item.product.name} (available: {item.product.stock})"
            )


class OrderService:

    @staticmethod
    async def submit_order(
        db: AsyncSession, user_id: str, shipping_address: str, payment_method: str
    ) -> Order:
        start = time.perf_counter()
        outcome = "failed"
        with tracer.start_as_current_span("submit_order") as span:
            span.set_attribute("user.id", user_id)
            try:
                address = validate_checkout(shipping_address, payment_method)
                async with submission_locks.hold(user_id):
                    order = await OrderService._place_order(db, user_id, address, payment_method)
                outcome = "success"
                span.set_attribute("order.id", order.id)
                logger.info(
                    "order_placed",
                    order_id=order.id,
                    user_id=user_id,
                    lines=len(order.items),
                    total_amount=str(order.total_amount),
                )
                return order
            except ValidationError:
                outcome = "invalid"
                raise
            except EmptyCartError:
                outcome = "empty_cart"
                raise
            except InsufficientStockError as e:
                outcome = "insufficient_stock"
                logger.warning("order_rejected", user_id=user_id, reason=e.message)
                raise
            finally:
                ecomm_checkout_total.labels(status=outcome).inc()
                ecomm_checkout_duration_seconds.observe(time.perf_counter() - start)

    @staticmethod
    async def _place_order(db: AsyncSession, user_id: str, shipping_address: str, payment_method: str) -> Order:
        try:
            # 1. Read the cart (rows locked until commit where the database supports it)
            cart_items = await CartRepository.list_items(db, user_id, for_update=True)
            if not cart_items:
                raise EmptyCartError()

            # 2. Snapshot lines and total
            lines = build_order_lines(cart_items)
            total = compute_total(lines)
            _check_stock(cart_items)

            # 3. Create the order
            order = await OrderRepository.create_order(
                db,
                Order(
                    user_id=user_id,
                    items=lines,
                    total_amount=total,
                    shipping_address=shipping_address,
                    payment_method=payment_method,
                    status=ORDER_STATUS_PENDING,
                ),
            )

            # 4. Empty the cart
            await CartRepository.clear_cart(db, user_id)

            # 5. Deduct stock; the conditional update is the real guard against overselling
            for line in lines:
                if not await ProductRepository.decrement_stock(db, line.product_id, line.quantity):
                    ecomm_stock_rejections_total.labels(product_id=str(line.product_id)).inc()
                    raise InsufficientStockError(f"Insufficient stock for {line.name}")

            await db.commit()
        except StorefrontError:
            await db.rollback()
            raise
        except SQLAlchemyError as e:
            await db.rollback()
            raise StorageError() from e
        return order

    @staticmethod
    async def get_order(db: AsyncSession, user_id: str, order_id: int) -> Order:
        order = await OrderRepository.get_order(db, user_id, order_id)
        if not order:
            raise NotFoundError("Order not found")
        return order

    @staticmethod
    async def list_orders(db: AsyncSession, user_id: str) -> Sequence[Order]:
        return await OrderRepository.list_orders(db, user_id)
