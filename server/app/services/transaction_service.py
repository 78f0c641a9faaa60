"""交易（订单）核心逻辑 —— 库存校验、原子扣减、下单与销售统计

下单流程在同一个数据库事务内完成：
1. 预校验：逐项加载在售图书（支持的数据库上加行锁），核对库存
2. 扣减：每本书一条带条件的 UPDATE（stock_quantity >= 请求数量），
   影响行数为 0 说明库存已被并发订单占用，直接报库存不足，不重试
3. 写入订单及明细，明细记录下单时的成交单价
任一步失败由 get_db 统一回滚，不会留下订单或库存变化。
"""

import logging
from collections import defaultdict
from decimal import Decimal

from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.book import Book
from app.models.order import Order, OrderItem
from app.utils.errors import InsufficientStockError, NotFoundError

logger = logging.getLogger(__name__)


# ─────────────────────── helpers ───────────────────────

async def _lock_active_book(db: AsyncSession, book_id: str) -> Book:
    """加载在售图书并加行锁（SQLite 忽略 FOR UPDATE，由条件扣减兜底）"""
    result = await db.execute(
        select(Book)
        .where(Book.id == book_id, Book.deleted_at.is_(None))
        .with_for_update()
    )
    book = result.scalar_one_or_none()
    if not book:
        raise NotFoundError(f"图书不存在: {book_id}")
    return book


async def reserve_stock(db: AsyncSession, book_id: str, quantity: int, title: str | None = None) -> None:
    """条件原子扣减库存；库存不足（含被并发订单抢先扣减）抛 InsufficientStockError"""
    result = await db.execute(
        update(Book)
        .where(
            Book.id == book_id,
            Book.deleted_at.is_(None),
            Book.stock_quantity >= quantity,
        )
        .values(stock_quantity=Book.stock_quantity - quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        logger.warning(f"[下单] 扣减库存失败 book={book_id} quantity={quantity}")
        raise InsufficientStockError(book_id, title)


def calc_order_total(order: Order) -> Decimal:
    """订单总额 = Σ 数量 × 成交单价"""
    return sum(
        (Decimal(str(item.unit_price)) * item.quantity for item in order.items),
        Decimal("0"),
    )


# ─────────────────────── 下单 ───────────────────────

async def create_transaction(db: AsyncSession, user_id: str, items: list[dict]) -> Order:
    """创建订单；items 为 [{"book_id": str, "quantity": int}, ...]，至少一项"""
    requested: dict[str, int] = defaultdict(int)
    for item in items:
        requested[item["book_id"]] += item["quantity"]

    # 按 ID 排序加锁，交叉下单（[A, B] 与 [B, A]）时不会互相等待形成死锁
    books: dict[str, Book] = {}
    for book_id in sorted(requested):
        books[book_id] = await _lock_active_book(db, book_id)

    # 预校验：全部明细检查完毕前不做任何写入；同一本书多行时按合计数量校验
    for book_id in sorted(requested):
        book = books[book_id]
        if requested[book_id] > book.stock_quantity:
            logger.warning(
                f"[下单] 库存不足 book={book_id} stock={book.stock_quantity} requested={requested[book_id]}"
            )
            raise InsufficientStockError(book_id, book.title)

    for book_id in sorted(requested):
        await reserve_stock(db, book_id, requested[book_id], books[book_id].title)

    order = Order(
        user_id=user_id,
        items=[
            OrderItem(
                book_id=item["book_id"],
                quantity=item["quantity"],
                unit_price=books[item["book_id"]].price,
            )
            for item in items
        ],
    )
    db.add(order)
    await db.flush()

    detail = await get_transaction_detail(db, order.id)
    logger.info(
        f"[下单] 订单 {order.id} 创建成功 user={user_id} items={len(items)} total={calc_order_total(detail)}"
    )
    return detail


# ─────────────────────── 查询 ───────────────────────

def _detail_query():
    return (
        select(Order)
        .options(
            selectinload(Order.user),
            selectinload(Order.items).selectinload(OrderItem.book),
        )
        .execution_options(populate_existing=True)
    )


async def get_transaction_detail(db: AsyncSession, order_id: str) -> Order | None:
    """获取订单详情（含明细 + 图书摘要 + 下单用户）"""
    result = await db.execute(_detail_query().where(Order.id == order_id))
    return result.scalar_one_or_none()


async def get_transaction(db: AsyncSession, order_id: str) -> Order:
    order = await get_transaction_detail(db, order_id)
    if not order:
        raise NotFoundError("交易不存在")
    return order


async def list_transactions(db: AsyncSession, user_id: str | None = None) -> list[Order]:
    """订单列表，按创建时间倒序；user_id 为空时返回全部订单"""
    stmt = _detail_query()
    if user_id is not None:
        stmt = stmt.where(Order.user_id == user_id)
    stmt = stmt.order_by(Order.created_at.desc(), Order.id)
    result = await db.execute(stmt)
    return list(result.scalars().all())


# ─────────────────────── 统计 ───────────────────────

async def get_statistics(db: AsyncSession) -> dict:
    """销售统计：订单数、售出册数、营业额（按成交单价计算）"""
    total_transactions = (
        await db.execute(select(func.count()).select_from(Order))
    ).scalar() or 0

    row = (
        await db.execute(
            select(
                func.coalesce(func.sum(OrderItem.quantity), 0).label("books_sold"),
                func.coalesce(func.sum(OrderItem.quantity * OrderItem.unit_price), 0).label("revenue"),
            )
        )
    ).one()

    return {
        "total_transactions": total_transactions,
        "total_books_sold": int(row.books_sold),
        "total_revenue": round(float(row.revenue), 2),
    }
