from typing import Optional, Sequence

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import CartItem


class CartRepository:
    """Every query is scoped by user_id. Callers own commit/rollback."""

    @staticmethod
    async def list_items(db: AsyncSession, user_id: str, for_update: bool = False) -> Sequence[CartItem]:
        stmt = (
            select(CartItem)
            .where(CartItem.user_id == user_id)
            .order_by(CartItem.created_at.asc(), CartItem.id.asc())
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await db.execute(stmt)
        return result.scalars().all()

    @staticmethod
    async def get_item(db: AsyncSession, user_id: str, item_id: int) -> Optional[CartItem]:
        result = await db.execute(
            select(CartItem).where(CartItem.id == item_id, CartItem.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    @staticmethod
    async def get_item_for_product(db: AsyncSession, user_id: str, product_id: int) -> Optional[CartItem]:
        result = await db.execute(
            select(CartItem).where(CartItem.user_id == user_id, CartItem.product_id == product_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    @staticmethod
    async def create_item(db: AsyncSession, item: CartItem) -> CartItem:
        db.add(item)
        await db.flush()
        return item

    @staticmethod
    async def increment_quantity(db: AsyncSession, user_id: str, product_id: int, quantity: int) -> bool:
        """Atomic quantity += n. False if the user has no line for this product yet."""
        result = await db.execute(
            update(CartItem)
            .where(CartItem.user_id == user_id, CartItem.product_id == product_id)
            .values(quantity=CartItem.quantity + quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    async def set_quantity(db: AsyncSession, user_id: str, item_id: int, quantity: int) -> bool:
        result = await db.execute(
            update(CartItem)
            .where(CartItem.id == item_id, CartItem.user_id == user_id)
            .values(quantity=quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    async def remove_item(db: AsyncSession, user_id: str, item_id: int) -> bool:
        result = await db.execute(
            delete(CartItem).where(CartItem.id == item_id, CartItem.user_id == user_id)
        )
        return result.rowcount == 1

    @staticmethod
    async def clear_cart(db: AsyncSession, user_id: str) -> int:
        """Deletes all items for the user and returns how many were removed."""
        result = await db.execute(delete(CartItem).where(CartItem.user_id == user_id))
        return result.rowcount
