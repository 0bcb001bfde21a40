from decimal import Decimal
from typing import Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shared.exceptions import NotFoundError, StorageError
from shared.money import to_money
from shared.observability import ecomm_reviews_total

from .models import Product, Review
from .repository import ProductRepository, ReviewRepository
from .schemas import ProductCreate, ReviewCreate

logger = structlog.get_logger(__name__)


class ProductService:

    @staticmethod
    async def create_product(db: AsyncSession, data: ProductCreate) -> Product:
        product = Product(
            name=data.name,
            description=data.description,
            price=to_money(data.price),
            image_url=data.image_url,
            category=data.category,
            stock=data.stock,
            rating=0.0,
            review_count=0,
        )
        try:
            product = await ProductRepository.create_product(db, product)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            raise StorageError() from e
        logger.info("product_created", product_id=product.id, category=product.category)
        return product

    @staticmethod
    async def list_products(
        db: AsyncSession,
        category: Optional[str] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        search: Optional[str] = None,
        sort: Optional[str] = None,
    ):
        return await ProductRepository.list_products(
            db, category=category, min_price=min_price, max_price=max_price, search=search, sort=sort
        )

    @staticmethod
    async def get_product_by_id(db: AsyncSession, product_id: int) -> Product:
        product = await ProductRepository.get_product_by_id(db, product_id)
        if not product:
            raise NotFoundError("Product not found")
        return product

    @staticmethod
    async def list_categories(db: AsyncSession) -> list[str]:
        return await ProductRepository.list_categories(db)


class ReviewService:

    @staticmethod
    async def add_review(db: AsyncSession, product_id: int, user_id: str, data: ReviewCreate) -> Product:
        """
        Append a review and recompute the product rating as the mean of all
        review ratings. The product row stays locked until commit so two
        reviews cannot both compute a stale mean.
        """
        try:
            product = await ProductRepository.get_product_by_id(db, product_id, for_update=True)
            if not product:
                raise NotFoundError("Product not found")

            display_name = (data.user or "").strip() or user_id
            await ReviewRepository.add_review(
                db,
                Review(
                    product_id=product.id,
                    user_id=user_id,
                    user=display_name,
                    comment=data.comment,
                    rating=data.rating,
                ),
            )
            product.rating, product.review_count = await ReviewRepository.rating_summary(db, product.id)
            await db.commit()
        except NotFoundError:
            await db.rollback()
            raise
        except SQLAlchemyError as e:
            await db.rollback()
            raise StorageError() from e

        await db.refresh(product)
        ecomm_reviews_total.inc()
        logger.info("review_added", product_id=product.id, user_id=user_id, rating=product.rating)
        return product

    @staticmethod
    async def list_reviews(db: AsyncSession, product_id: int, limit: int = 20, offset: int = 0):
        if not await ProductRepository.get_product_by_id(db, product_id):
            raise NotFoundError("Product not found")
        return await ReviewRepository.list_reviews(db, product_id, limit, offset)
