from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from shared.money import Money


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    price: Money = Field(..., ge=0)
    image_url: str = ""
    category: str = Field(..., min_length=1)
    stock: int = Field(0, ge=0)


class ProductResponse(BaseModel):
    id: int
    name: str
    description: str
    price: Money
    image_url: str
    category: str
    stock: int
    rating: float
    review_count: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ReviewCreate(BaseModel):
    user: Optional[str] = Field(None, description="Display name; defaults to the caller's user id.")
    comment: str = Field(..., min_length=1)
    rating: int = Field(..., ge=1, le=5)


class ReviewResponse(BaseModel):
    id: int
    product_id: int
    user: str
    comment: str
    rating: int
    date: Optional[datetime] = None

    class Config:
        from_attributes = True
