import os

# configure before any application module is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret")
os.environ.setdefault("INTERNAL_API_KEY", "test-internal-key")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["CREATE_TABLES_ON_STARTUP"] = "false"

from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from main import app
from shared.config.database import get_db, init_models
from shared.security import create_access_token
from services.cart_service.models import CartItem
from services.product_service.models import Product


@pytest.fixture
def auth_headers():
    def _headers(user_id: str) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}

    return _headers


@pytest.fixture
def internal_headers():
    return {"X-Internal-API-Key": os.environ["INTERNAL_API_KEY"]}


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'storefront.db'}")
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_product(session_factory):
    async def _make(name="Widget", price="10.00", stock=10, category="Electronics", description="", **extra):
        async with session_factory() as session:
            product = Product(
                name=name,
                description=description,
                price=Decimal(price),
                image_url=extra.pop("image_url", f"https://img.example/{name}.png"),
                category=category,
                stock=stock,
                rating=extra.pop("rating", 0.0),
                review_count=0,
                **extra,
            )
            session.add(product)
            await session.commit()
            return product

    return _make


@pytest.fixture
def put_in_cart(session_factory):
    async def _put(user_id: str, product: Product, quantity: int):
        async with session_factory() as session:
            item = CartItem(user_id=user_id, product_id=product.id, quantity=quantity)
            session.add(item)
            await session.commit()
            return item

    return _put


@pytest.fixture
def fetch(session_factory):
    """Read a row through a fresh session so no identity-map state leaks into assertions."""
    async def _fetch(model, pk):
        async with session_factory() as session:
            return await session.get(model, pk)

    return _fetch
