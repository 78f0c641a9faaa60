"""图书目录 —— 创建、检索、更新与软删除"""

from datetime import datetime

from sqlalchemy import select, func, and_, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.book import Book
from app.services.genre_service import get_active_genre
from app.utils.errors import ConflictError, NotFoundError, ValidationError

# 允许排序的字段（白名单），避免把任意查询参数直接映射到列名
SORTABLE_FIELDS = {
    "title": Book.title,
    "writer": Book.writer,
    "publisher": Book.publisher,
    "publication_year": Book.publication_year,
    "price": Book.price,
    "stock_quantity": Book.stock_quantity,
    "created_at": Book.created_at,
}


async def get_book_by_title(db: AsyncSession, title: str) -> Book | None:
    """按书名查找（含已软删除的记录）"""
    result = await db.execute(select(Book).where(Book.title == title))
    return result.scalar_one_or_none()


async def get_active_book(db: AsyncSession, book_id: str) -> Book:
    """获取未删除的图书（含分类），不存在抛 NotFoundError"""
    result = await db.execute(
        select(Book)
        .options(selectinload(Book.genre))
        .where(Book.id == book_id, Book.deleted_at.is_(None))
        .execution_options(populate_existing=True)
    )
    book = result.scalar_one_or_none()
    if not book:
        raise NotFoundError("图书不存在")
    return book


async def create_book(
    db: AsyncSession,
    title: str,
    writer: str,
    publisher: str,
    publication_year: int,
    price: float,
    stock_quantity: int,
    genre_id: str,
    description: str | None = None,
) -> Book:
    """创建图书：分类必须存在且未删除，书名不可重复"""
    await get_active_genre(db, genre_id)
    if await get_book_by_title(db, title):
        raise ConflictError("书名已存在")

    book = Book(
        title=title,
        writer=writer,
        publisher=publisher,
        publication_year=publication_year,
        description=description,
        price=price,
        stock_quantity=stock_quantity,
        genre_id=genre_id,
    )
    db.add(book)
    try:
        await db.flush()
    except IntegrityError as e:
        # 并发创建同名图书时，两边的查重都可能通过，由唯一约束兜底
        raise ConflictError("书名已存在") from e
    return await get_active_book(db, book.id)


async def get_books_paginated(
    db: AsyncSession,
    page: int = 1,
    limit: int = 10,
    search: str | None = None,
    order_by: str = "title",
    order: str = "asc",
) -> tuple[list[Book], int]:
    """图书列表（分页 + 书名/作者模糊搜索 + 白名单排序）"""
    column = SORTABLE_FIELDS.get(order_by)
    if column is None:
        raise ValidationError(f"不支持的排序字段: {order_by}")
    if order not in ("asc", "desc"):
        raise ValidationError(f"不支持的排序方向: {order}")

    conditions = [Book.deleted_at.is_(None)]
    if search:
        # autoescape：% 与 _ 按字面匹配，不作通配符
        conditions.append(or_(
            Book.title.icontains(search, autoescape=True),
            Book.writer.icontains(search, autoescape=True),
        ))
    where_clause = and_(*conditions)

    count_result = await db.execute(
        select(func.count()).select_from(Book).where(where_clause)
    )
    total = count_result.scalar() or 0

    result = await db.execute(
        select(Book)
        .options(selectinload(Book.genre))
        .where(where_clause)
        .order_by(column.desc() if order == "desc" else column.asc(), Book.id)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total


async def get_books_by_genre(db: AsyncSession, genre_id: str) -> list[Book]:
    await get_active_genre(db, genre_id)
    result = await db.execute(
        select(Book)
        .options(selectinload(Book.genre))
        .where(Book.genre_id == genre_id, Book.deleted_at.is_(None))
        .order_by(Book.title)
    )
    return list(result.scalars().all())


async def update_book(db: AsyncSession, book_id: str, fields: dict) -> Book:
    """部分更新；改名时校验唯一，换分类时校验分类有效"""
    book = await get_active_book(db, book_id)

    title = fields.get("title")
    if title is not None and title != book.title and await get_book_by_title(db, title):
        raise ConflictError("书名已存在")
    genre_id = fields.get("genre_id")
    if genre_id is not None and genre_id != book.genre_id:
        await get_active_genre(db, genre_id)

    for key, value in fields.items():
        setattr(book, key, value)
    try:
        await db.flush()
    except IntegrityError as e:
        raise ConflictError("书名已存在") from e
    return await get_active_book(db, book_id)


async def delete_book(db: AsyncSession, book_id: str) -> None:
    """软删除：仅写入 deleted_at，历史订单仍可引用"""
    book = await get_active_book(db, book_id)
    book.deleted_at = datetime.utcnow()
    await db.flush()
