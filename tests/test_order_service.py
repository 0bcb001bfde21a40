"""Order placement workflow, exercised directly through the service layer."""
import asyncio
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from shared.exceptions import (
    EmptyCartError,
    InsufficientStockError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from services.cart_service.models import CartItem
from services.cart_service.repository import CartRepository
from services.order_service.models import Order
from services.order_service.service import OrderService, compute_total, submission_locks
from services.product_service.models import Product
from services.product_service.repository import ProductRepository

ADDRESS = "221B Baker Street, London"


async def submit(session_factory, user_id, address=ADDRESS, method="Credit Card"):
    async with session_factory() as db:
        return await OrderService.submit_order(db, user_id, address, method)


async def count(session_factory, model, *where):
    async with session_factory() as db:
        return (await db.execute(select(func.count()).select_from(model).where(*where))).scalar_one()


class TestSubmitOrder:
    async def test_two_line_cart_totals_and_lines(self, session_factory, make_product, put_in_cart):
        a = await make_product(name="ProductA", price="10.00", stock=5)
        b = await make_product(name="ProductB", price="5.50", stock=5)
        await put_in_cart("u1", a, 2)
        await put_in_cart("u1", b, 1)

        order = await submit(session_factory, "u1")

        assert order.total_amount == Decimal("25.50")
        assert len(order.items) == 2
        assert order.status == "Pending"
        assert order.shipping_address == ADDRESS
        assert order.payment_method == "Credit Card"
        assert order.created_at is not None
        lines = {line.name: line for line in order.items}
        assert lines["ProductA"].quantity == 2
        assert lines["ProductA"].price == Decimal("10.00")
        assert lines["ProductB"].image_url == "https://img.example/ProductB.png"

    async def test_cart_is_empty_afterwards(self, session_factory, make_product, put_in_cart):
        product = await make_product(stock=3)
        await put_in_cart("u1", product, 1)

        await submit(session_factory, "u1")

        assert await count(session_factory, CartItem, CartItem.user_id == "u1") == 0

    async def test_other_users_cart_untouched(self, session_factory, make_product, put_in_cart):
        product = await make_product(stock=10)
        await put_in_cart("u1", product, 1)
        await put_in_cart("u2", product, 4)

        await submit(session_factory, "u1")

        assert await count(session_factory, CartItem, CartItem.user_id == "u2") == 1

    async def test_stock_decremented_by_ordered_quantity(self, session_factory, make_product, put_in_cart, fetch):
        a = await make_product(name="A", stock=10)
        b = await make_product(name="B", stock=4)
        await put_in_cart("u1", a, 3)
        await put_in_cart("u1", b, 4)

        await submit(session_factory, "u1")

        assert (await fetch(Product, a.id)).stock == 7
        assert (await fetch(Product, b.id)).stock == 0

    async def test_empty_cart_fails_without_mutation(self, session_factory, make_product, fetch):
        product = await make_product(stock=10)

        with pytest.raises(EmptyCartError):
            await submit(session_factory, "u1")

        assert await count(session_factory, Order) == 0
        assert await count(session_factory, CartItem) == 0
        assert (await fetch(Product, product.id)).stock == 10

    @pytest.mark.parametrize(
        "address, method",
        [("", "Credit Card"), ("   ", "PayPal"), (ADDRESS, "Bitcoin"), (ADDRESS, "credit card")],
    )
    async def test_invalid_checkout_input(self, session_factory, make_product, put_in_cart, address, method):
        product = await make_product(stock=10)
        await put_in_cart("u1", product, 1)

        with pytest.raises(ValidationError):
            await submit(session_factory, "u1", address=address, method=method)

        assert await count(session_factory, Order) == 0
        assert await count(session_factory, CartItem) == 1

    async def test_address_is_stripped(self, session_factory, make_product, put_in_cart):
        product = await make_product(stock=10)
        await put_in_cart("u1", product, 1)

        order = await submit(session_factory, "u1", address=f"  {ADDRESS}\n")

        assert order.shipping_address == ADDRESS

    async def test_insufficient_stock_rejects_whole_order(self, session_factory, make_product, put_in_cart, fetch):
        plenty = await make_product(name="Plenty", stock=10)
        scarce = await make_product(name="Scarce", stock=1)
        await put_in_cart("u1", plenty, 2)
        await put_in_cart("u1", scarce, 2)

        with pytest.raises(InsufficientStockError) as exc_info:
            await submit(session_factory, "u1")

        assert "Scarce" in exc_info.value.message
        assert await count(session_factory, Order) == 0
        assert await count(session_factory, CartItem, CartItem.user_id == "u1") == 2
        assert (await fetch(Product, plenty.id)).stock == 10
        assert (await fetch(Product, scarce.id)).stock == 1

    async def test_failed_decrement_rolls_back_order_and_cart(
        self, session_factory, make_product, put_in_cart, fetch, monkeypatch
    ):
        a = await make_product(name="A", stock=10)
        b = await make_product(name="B", stock=10)
        await put_in_cart("u1", a, 1)
        await put_in_cart("u1", b, 1)

        real_decrement = ProductRepository.decrement_stock

        async def decrement_then_fail(db, product_id, quantity):
            if product_id == b.id:
                return False
            return await real_decrement(db, product_id, quantity)

        monkeypatch.setattr(ProductRepository, "decrement_stock", staticmethod(decrement_then_fail))

        with pytest.raises(InsufficientStockError):
            await submit(session_factory, "u1")

        assert await count(session_factory, Order) == 0
        assert await count(session_factory, CartItem, CartItem.user_id == "u1") == 2
        assert (await fetch(Product, a.id)).stock == 10

    async def test_storage_failure_is_wrapped_and_rolled_back(
        self, session_factory, make_product, put_in_cart, fetch, monkeypatch
    ):
        product = await make_product(stock=10)
        await put_in_cart("u1", product, 2)

        async def broken_clear(db, user_id):
            raise SQLAlchemyError("connection reset")

        monkeypatch.setattr(CartRepository, "clear_cart", staticmethod(broken_clear))

        with pytest.raises(StorageError) as exc_info:
            await submit(session_factory, "u1")

        assert "connection reset" not in exc_info.value.message
        assert await count(session_factory, Order) == 0
        assert await count(session_factory, CartItem) == 1
        assert (await fetch(Product, product.id)).stock == 10

    async def test_price_change_does_not_touch_placed_order(self, session_factory, make_product, put_in_cart):
        product = await make_product(price="10.00", stock=10)
        await put_in_cart("u1", product, 3)
        order = await submit(session_factory, "u1")

        async with session_factory() as db:
            row = await db.get(Product, product.id)
            row.price = Decimal("99.99")
            await db.commit()

        async with session_factory() as db:
            stored = await OrderService.get_order(db, "u1", order.id)
        assert stored.total_amount == Decimal("30.00")
        assert stored.items[0].price == Decimal("10.00")

    async def test_concurrent_submissions_place_one_order(self, session_factory, make_product, put_in_cart, fetch):
        product = await make_product(stock=10)
        await put_in_cart("u1", product, 2)

        results = await asyncio.gather(
            submit(session_factory, "u1"),
            submit(session_factory, "u1"),
            return_exceptions=True,
        )

        orders = [r for r in results if isinstance(r, Order)]
        errors = [r for r in results if isinstance(r, Exception)]
        assert len(orders) == 1
        assert len(errors) == 1 and isinstance(errors[0], EmptyCartError)
        assert (await fetch(Product, product.id)).stock == 8
        assert len(submission_locks) == 0


class TestReadOrders:
    async def test_get_order_of_other_user_is_not_found(self, session_factory, make_product, put_in_cart):
        product = await make_product(stock=10)
        await put_in_cart("owner", product, 1)
        order = await submit(session_factory, "owner")

        async with session_factory() as db:
            with pytest.raises(NotFoundError):
                await OrderService.get_order(db, "intruder", order.id)
            assert (await OrderService.get_order(db, "owner", order.id)).id == order.id

    async def test_get_missing_order(self, db):
        with pytest.raises(NotFoundError):
            await OrderService.get_order(db, "u1", 12345)

    async def test_list_orders_newest_first_and_scoped(self, session_factory, make_product, put_in_cart):
        product = await make_product(stock=10)
        placed = []
        for qty in (1, 2, 3):
            await put_in_cart("u1", product, qty)
            placed.append(await submit(session_factory, "u1"))
        await put_in_cart("u2", product, 1)
        await submit(session_factory, "u2")

        async with session_factory() as db:
            orders = await OrderService.list_orders(db, "u1")

        assert [o.id for o in orders] == [o.id for o in reversed(placed)]
        assert all(o.user_id == "u1" for o in orders)


def test_compute_total_has_no_float_drift():
    class Line:
        def __init__(self, price, quantity):
            self.price, self.quantity = Decimal(price), quantity

    lines = [Line("0.10", 1), Line("0.20", 1), Line("19.99", 3)]
    assert compute_total(lines) == Decimal("60.27")
