"""
Load the sample catalogue.

    python -m services.product_service.seed

Creates missing tables, wipes existing products (and their reviews) and
inserts SAMPLE_PRODUCTS. Refuses to wipe a catalogue that has orders pointing
at it unless --force is given.
"""
import argparse
import asyncio
from decimal import Decimal

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import AsyncSessionLocal, init_models
from shared.observability.setup import configure_logging

from .models import Product
from .repository import ProductRepository

logger = structlog.get_logger(__name__)

_IMG = "https://images.unsplash.com/photo-{}?w=400"

SAMPLE_PRODUCTS = [
    {"name": "iPhone 14 Pro", "description": "Latest Apple smartphone with A16 Bionic chip, 48MP camera, and Dynamic Island.",
     "price": "999.99", "image_url": _IMG.format("1678652197831-534a85862aff"), "category": "Electronics", "stock": 50, "rating": 4.8},
    {"name": "Samsung Galaxy S23", "description": "Premium Android phone with Snapdragon 8 Gen 2, 50MP camera.",
     "price": "799.99", "image_url": _IMG.format("1610945415295-d9bbf067e59c"), "category": "Electronics", "stock": 45, "rating": 4.6},
    {"name": "Sony WH-1000XM5", "description": "Industry-leading noise canceling wireless headphones.",
     "price": "399.99", "image_url": _IMG.format("1545127398-14699f92334b"), "category": "Electronics", "stock": 30, "rating": 4.9},
    {"name": "MacBook Pro 14", "description": "Apple M2 Pro chip, 16GB RAM, 512GB SSD. Perfect for professionals.",
     "price": "1999.99", "image_url": _IMG.format("1517336714731-489689fd1ca8"), "category": "Electronics", "stock": 20, "rating": 4.9},
    {"name": "Nike Air Max 270", "description": "Comfortable running shoes with Max Air cushioning.",
     "price": "150.00", "image_url": _IMG.format("1542291026-7eec264c27ff"), "category": "Sports", "stock": 100, "rating": 4.5},
    {"name": "Adidas Ultraboost", "description": "Premium running shoes with responsive Boost cushioning.",
     "price": "180.00", "image_url": _IMG.format("1608231387042-66d1773070a5"), "category": "Sports", "stock": 80, "rating": 4.7},
    {"name": "Levi's 501 Jeans", "description": "Classic straight fit denim jeans.",
     "price": "89.99", "image_url": "", "category": "Clothing", "stock": 150, "rating": 4.3},
    {"name": "H&M Cotton T-Shirt", "description": "Soft everyday cotton t-shirt.",
     "price": "19.99", "image_url": "", "category": "Clothing", "stock": 200, "rating": 4.0},
    {"name": "Zara Leather Jacket", "description": "Faux leather biker jacket.",
     "price": "299.99", "image_url": "", "category": "Clothing", "stock": 40, "rating": 4.6},
    {"name": "The Great Gatsby", "description": "F. Scott Fitzgerald's classic novel.",
     "price": "14.99", "image_url": "", "category": "Books", "stock": 100, "rating": 4.8},
    {"name": "Atomic Habits", "description": "An easy and proven way to build good habits and break bad ones.",
     "price": "16.99", "image_url": "", "category": "Books", "stock": 120, "rating": 4.9},
    {"name": "IKEA Office Chair", "description": "Ergonomic office chair with adjustable height.",
     "price": "149.99", "image_url": "", "category": "Home", "stock": 35, "rating": 4.4},
    {"name": "Phillips Smart Bulb", "description": "WiFi-enabled color changing LED bulb.",
     "price": "24.99", "image_url": "", "category": "Home", "stock": 150, "rating": 4.5},
    {"name": "Dyson V11 Vacuum", "description": "Cordless vacuum with powerful suction.",
     "price": "599.99", "image_url": "", "category": "Home", "stock": 25, "rating": 4.8},
    {"name": "L'Oreal Face Cream", "description": "Hydrating daily moisturizer.",
     "price": "29.99", "image_url": "", "category": "Beauty", "stock": 200, "rating": 4.2},
    {"name": "LEGO Star Wars Set", "description": "Build your own Millennium Falcon.",
     "price": "159.99", "image_url": "", "category": "Toys", "stock": 40, "rating": 4.9},
]


async def seed_products(db: AsyncSession, products=SAMPLE_PRODUCTS, force: bool = False) -> int:
    # imported here so the product service does not depend on the order service at import time
    from services.cart_service.models import CartItem
    from services.order_service.models import OrderItem

    ordered = (await db.execute(select(func.count(OrderItem.id)))).scalar_one()
    if ordered and not force:
        raise RuntimeError(
            f"{ordered} order lines reference the current catalogue; pass --force to wipe it anyway"
        )

    await db.execute(CartItem.__table__.delete())
    await ProductRepository.delete_all(db)
    for data in products:
        # seeded ratings are display values only; review_count stays 0 until real reviews arrive
        db.add(Product(**{**data, "price": Decimal(data["price"]), "review_count": 0}))
    await db.commit()
    logger.info("catalogue_seeded", products=len(products))
    return len(products)


async def main(force: bool = False) -> None:
    configure_logging()
    # register every table before create_all
    import services.cart_service.models  # noqa: F401
    import services.order_service.models  # noqa: F401

    await init_models()
    async with AsyncSessionLocal() as db:
        await seed_products(db, force=force)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the product catalogue.")
    parser.add_argument("--force", action="store_true", help="wipe products even if orders reference them")
    args = parser.parse_args()
    asyncio.run(main(force=args.force))
