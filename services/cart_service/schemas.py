from pydantic import BaseModel, Field

from services.product_service.schemas import ProductResponse


class CartItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(1, ge=1, le=10000)


class CartItemUpdate(BaseModel):
    quantity: int = Field(..., ge=1, le=10000)


class CartItemResponse(BaseModel):
    id: int
    product_id: int
    quantity: int
    product: ProductResponse

    class Config:
        from_attributes = True


class MessageResponse(BaseModel):
    message: str
