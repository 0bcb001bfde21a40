from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.security import get_current_user

from .schemas import CartItemCreate, CartItemResponse, CartItemUpdate, MessageResponse
from .service import CartService

router = APIRouter(prefix="/cart", tags=["Cart"])


@router.get("", response_model=list[CartItemResponse])
async def get_cart(user_id: str = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await CartService.list_items(db, user_id)


@router.post("", response_model=CartItemResponse, status_code=status.HTTP_201_CREATED)
async def add_item(
    item: CartItemCreate,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await CartService.add_item(db, user_id, item)


@router.put("/{item_id}", response_model=CartItemResponse)
async def update_item(
    item_id: int,
    payload: CartItemUpdate,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await CartService.update_quantity(db, user_id, item_id, payload.quantity)


@router.delete("/{item_id}", response_model=MessageResponse)
async def remove_item(
    item_id: int,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await CartService.remove_item(db, user_id, item_id)
    return {"message": "Item removed from cart"}


@router.delete("", response_model=MessageResponse)
async def clear_cart(user_id: str = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    await CartService.clear_cart(db, user_id)
    return {"message": "Cart cleared"}
