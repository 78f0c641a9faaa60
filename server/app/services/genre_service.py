"""图书分类 —— 创建、分页检索、更新与软删除"""

from datetime import datetime

from sqlalchemy import select, func, and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.genre import Genre
from app.utils.errors import ConflictError, NotFoundError


async def get_genre_by_name(db: AsyncSession, name: str) -> Genre | None:
    """按名称查找（含已软删除的记录，名称唯一约束覆盖全部行）"""
    result = await db.execute(select(Genre).where(Genre.name == name))
    return result.scalar_one_or_none()


async def get_active_genre(db: AsyncSession, genre_id: str) -> Genre:
    """获取未删除的分类，不存在抛 NotFoundError"""
    result = await db.execute(
        select(Genre).where(Genre.id == genre_id, Genre.deleted_at.is_(None))
    )
    genre = result.scalar_one_or_none()
    if not genre:
        raise NotFoundError("分类不存在")
    return genre


async def create_genre(db: AsyncSession, name: str) -> Genre:
    if await get_genre_by_name(db, name):
        raise ConflictError("分类已存在")

    genre = Genre(name=name)
    db.add(genre)
    try:
        await db.flush()
    except IntegrityError as e:
        # 查重与写入之间可能被并发请求抢先，由唯一约束兜底
        raise ConflictError("分类已存在") from e
    await db.refresh(genre)
    return genre


async def get_genres_paginated(
    db: AsyncSession,
    page: int = 1,
    limit: int = 10,
    search: str | None = None,
) -> tuple[list[Genre], int]:
    """分类列表（分页 + 名称模糊搜索，不区分大小写）"""
    conditions = [Genre.deleted_at.is_(None)]
    if search:
        conditions.append(Genre.name.icontains(search, autoescape=True))
    where_clause = and_(*conditions)

    count_result = await db.execute(
        select(func.count()).select_from(Genre).where(where_clause)
    )
    total = count_result.scalar() or 0

    result = await db.execute(
        select(Genre)
        .where(where_clause)
        .order_by(Genre.name)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total


async def update_genre(db: AsyncSession, genre_id: str, name: str) -> Genre:
    genre = await get_active_genre(db, genre_id)
    if name != genre.name and await get_genre_by_name(db, name):
        raise ConflictError("分类已存在")

    genre.name = name
    try:
        await db.flush()
    except IntegrityError as e:
        raise ConflictError("分类已存在") from e
    await db.refresh(genre)
    return genre


async def delete_genre(db: AsyncSession, genre_id: str) -> None:
    """软删除：仅写入 deleted_at"""
    genre = await get_active_genre(db, genre_id)
    genre.deleted_at = datetime.utcnow()
    await db.flush()
