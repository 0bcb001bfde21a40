from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.security import get_current_user, verify_internal_api_key

from .schemas import ProductCreate, ProductResponse, ReviewCreate, ReviewResponse
from .service import ProductService, ReviewService

router = APIRouter(prefix="/products", tags=["Products"])


@router.get("", response_model=list[ProductResponse])
async def list_products(
    category: Optional[str] = Query(default=None),
    min_price: Optional[Decimal] = Query(default=None, alias="minPrice", ge=0),
    max_price: Optional[Decimal] = Query(default=None, alias="maxPrice", ge=0),
    search: Optional[str] = Query(default=None),
    # price-asc, price-desc or name; anything else means newest first
    sort: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db),
):
    return await ProductService.list_products(
        db, category=category, min_price=min_price, max_price=max_price, search=search, sort=sort
    )


# must be declared before /{product_id}
@router.get("/categories", response_model=list[str])
async def list_categories(db: AsyncSession = Depends(get_db)):
    return await ProductService.list_categories(db)


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(verify_internal_api_key)],
)
async def create_product(product: ProductCreate, db: AsyncSession = Depends(get_db)):
    return await ProductService.create_product(db, product)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: int, db: AsyncSession = Depends(get_db)):
    return await ProductService.get_product_by_id(db, product_id)


@router.get("/{product_id}/reviews", response_model=list[ReviewResponse])
async def list_reviews(
    product_id: int,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    return await ReviewService.list_reviews(db, product_id, limit=limit, offset=offset)


@router.post("/{product_id}/review", response_model=ProductResponse)
async def add_review(
    product_id: int,
    review: ReviewCreate,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await ReviewService.add_review(db, product_id, user_id, review)
