import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shared.exceptions import NotFoundError, StorageError
from services.product_service.repository import ProductRepository

from .models import CartItem
from .repository import CartRepository
from .schemas import CartItemCreate

logger = structlog.get_logger(__name__)


class CartService:

    @staticmethod
    async def list_items(db: AsyncSession, user_id: str):
        return await CartRepository.list_items(db, user_id)

    @staticmethod
    async def add_item(db: AsyncSession, user_id: str, data: CartItemCreate) -> CartItem:
        """Upsert: increment the existing line for this product or create a new one."""
        try:
            if not await ProductRepository.get_product_by_id(db, data.product_id):
                raise NotFoundError("Product not found")

            if not await CartRepository.increment_quantity(db, user_id, data.product_id, data.quantity):
                try:
                    await CartRepository.create_item(
                        db, CartItem(user_id=user_id, product_id=data.product_id, quantity=data.quantity)
                    )
                except IntegrityError:
                    # lost the insert race on uq_cart_user_product; nothing else was written yet
                    await db.rollback()
                    if not await CartRepository.increment_quantity(db, user_id, data.product_id, data.quantity):
                        raise StorageError()
            await db.commit()
        except (NotFoundError, StorageError):
            await db.rollback()
            raise
        except SQLAlchemyError as e:
            await db.rollback()
            raise StorageError() from e

        item = await CartRepository.get_item_for_product(db, user_id, data.product_id)
        logger.info("cart_item_added", user_id=user_id, product_id=data.product_id, quantity=item.quantity)
        return item

    @staticmethod
    async def update_quantity(db: AsyncSession, user_id: str, item_id: int, quantity: int) -> CartItem:
        try:
            updated = await CartRepository.set_quantity(db, user_id, item_id, quantity)
            if not updated:
                raise NotFoundError("Cart item not found")
            await db.commit()
        except NotFoundError:
            await db.rollback()
            raise
        except SQLAlchemyError as e:
            await db.rollback()
            raise StorageError() from e
        return await CartRepository.get_item(db, user_id, item_id)

    @staticmethod
    async def remove_item(db: AsyncSession, user_id: str, item_id: int) -> None:
        try:
            removed = await CartRepository.remove_item(db, user_id, item_id)
            if not removed:
                raise NotFoundError("Cart item not found")
            await db.commit()
        except NotFoundError:
            await db.rollback()
            raise
        except SQLAlchemyError as e:
            await db.rollback()
            raise StorageError() from e

    @staticmethod
    async def clear_cart(db: AsyncSession, user_id: str) -> int:
        try:
            removed = await CartRepository.clear_cart(db, user_id)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            raise StorageError() from e
        logger.info("cart_cleared", user_id=user_id, items=removed)
        return removed
