from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.security import ORDER_RATE_LIMIT, get_current_user, limiter

from .schemas import OrderCreate, OrderResponse
from .service import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(ORDER_RATE_LIMIT)
async def create_order(
    request: Request,                          # slowapi reads the caller from here
    payload: OrderCreate,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService.submit_order(db, user_id, payload.shipping_address, payload.payment_method)


@router.get("", response_model=list[OrderResponse])
async def list_orders(user_id: str = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await OrderService.list_orders(db, user_id)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: int,
    user_id: str = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await OrderService.get_order(db, user_id, order_id)
