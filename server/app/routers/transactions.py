from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.order import Order
from app.models.user import User
from app.schemas.book import BookBrief
from app.schemas.common import ApiResponse
from app.schemas.transaction import (
    TransactionCreate,
    TransactionResponse,
    TransactionItemResponse,
    TransactionUser,
    TransactionStatistics,
)
from app.services.transaction_service import (
    create_transaction,
    list_transactions,
    get_transaction,
    get_statistics,
    calc_order_total,
)
from app.utils.deps import get_current_user

router = APIRouter(prefix="/transactions", tags=["交易"])


def _to_response(order: Order) -> TransactionResponse:
    """将 ORM Order 转为响应模型（含明细小计与订单总额）"""
    items = []
    for i in order.items:
        unit_price = Decimal(str(i.unit_price))
        items.append(
            TransactionItemResponse(
                id=i.id,
                book_id=i.book_id,
                title=i.book.title,
                quantity=i.quantity,
                unit_price=float(unit_price),
                subtotal=float(unit_price * i.quantity),
                book=BookBrief.model_validate(i.book),
            )
        )
    return TransactionResponse(
        id=order.id,
        user_id=order.user_id,
        user=TransactionUser.model_validate(order.user) if order.user else None,
        created_at=order.created_at,
        total_price=float(calc_order_total(order)),
        items=items,
    )


@router.post("", response_model=ApiResponse[TransactionResponse], status_code=201, summary="创建交易")
async def create(
    body: TransactionCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """下单：校验库存 → 扣减库存 → 写入订单明细，全程一个事务"""
    order = await create_transaction(
        db,
        current_user.id,
        [{"book_id": str(i.book_id), "quantity": i.quantity} for i in body.items],
    )
    # 先提交再返回：提交失败（如写冲突）时客户端收到错误而不是成功响应
    await db.commit()
    return ApiResponse(message="交易创建成功", data=_to_response(order))


@router.get("", response_model=ApiResponse[list[TransactionResponse]], summary="交易列表")
async def list_all(
    show_all: bool = Query(False, alias="all", description="true 返回全部交易，否则仅返回当前用户的交易"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    orders = await list_transactions(db, None if show_all else current_user.id)
    return ApiResponse(message="获取成功", data=[_to_response(o) for o in orders])


# 需在 /{order_id} 之前注册，否则会被当作订单 ID 匹配
@router.get("/statistics", response_model=ApiResponse[TransactionStatistics], summary="销售统计")
async def statistics(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    stats = await get_statistics(db)
    return ApiResponse(message="获取成功", data=TransactionStatistics(**stats))


@router.get("/{order_id}", response_model=ApiResponse[TransactionResponse], summary="交易详情")
async def get_detail(
    order_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    order = await get_transaction(db, order_id)
    return ApiResponse(message="获取成功", data=_to_response(order))
