from decimal import Decimal
from typing import Optional, Sequence

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Product, Review


class ProductRepository:
    """Data access only; callers own commit/rollback."""

    @staticmethod
    async def create_product(db: AsyncSession, product: Product) -> Product:
        db.add(product)
        await db.flush()
        await db.refresh(product)
        return product

    @staticmethod
    async def list_products(
        db: AsyncSession,
        category: Optional[str] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        search: Optional[str] = None,
        sort: Optional[str] = None,
    ) -> Sequence[Product]:
        stmt = select(Product)

        if category and category != "All":
            stmt = stmt.where(Product.category == category)
        if min_price is not None:
            stmt = stmt.where(Product.price >= min_price)
        if max_price is not None:
            stmt = stmt.where(Product.price <= max_price)
        if search:
            # % and _ in the search text are literals, not wildcards
            stmt = stmt.where(
                or_(
                    Product.name.icontains(search, autoescape=True),
                    Product.description.icontains(search, autoescape=True),
                )
            )

        if sort == "price-asc":
            stmt = stmt.order_by(Product.price.asc(), Product.id.asc())
        elif sort == "price-desc":
            stmt = stmt.order_by(Product.price.desc(), Product.id.asc())
        elif sort == "name":
            stmt = stmt.order_by(Product.name.asc(), Product.id.asc())
        else:
            stmt = stmt.order_by(Product.created_at.desc(), Product.id.desc())

        result = await db.execute(stmt)
        return result.scalars().all()

    @staticmethod
    async def get_product_by_id(db: AsyncSession, product_id: int, for_update: bool = False) -> Optional[Product]:
        stmt = select(Product).where(Product.id == product_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await db.execute(stmt)
        return result.scalars().first()

    @staticmethod
    async def list_categories(db: AsyncSession) -> list[str]:
        result = await db.execute(select(Product.category).distinct().order_by(Product.category))
        return list(result.scalars().all())

    @staticmethod
    async def decrement_stock(db: AsyncSession, product_id: int, quantity: int) -> bool:
        """Atomic conditional decrement. False when the row is missing or short on stock."""
        result = await db.execute(
            update(Product)
            .where(Product.id == product_id, Product.stock >= quantity)
            .values(stock=Product.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    async def delete_all(db: AsyncSession) -> None:
        await db.execute(Review.__table__.delete())
        await db.execute(Product.__table__.delete())


class ReviewRepository:

    @staticmethod
    async def add_review(db: AsyncSession, review: Review) -> Review:
        db.add(review)
        await db.flush()
        return review

    @staticmethod
    async def rating_summary(db: AsyncSession, product_id: int) -> tuple[float, int]:
        result = await db.execute(
            select(func.avg(Review.rating), func.count(Review.id)).where(Review.product_id == product_id)
        )
        average, count = result.one()
        return float(average or 0.0), int(count or 0)

    @staticmethod
    async def list_reviews(db: AsyncSession, product_id: int, limit: int, offset: int) -> Sequence[Review]:
        result = await db.execute(
            select(Review)
            .where(Review.product_id == product_id)
            .order_by(Review.date.desc(), Review.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return result.scalars().all()
