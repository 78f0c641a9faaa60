from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.models.user import User
from app.schemas.book import BookCreate, BookUpdate, BookResponse
from app.schemas.common import ApiResponse, Page, PageMeta
from app.services.book_service import (
    create_book,
    get_books_paginated,
    get_books_by_genre,
    get_active_book,
    update_book,
    delete_book,
)
from app.utils.deps import get_current_user

router = APIRouter(prefix="/books", tags=["图书"])


@router.post("", response_model=ApiResponse[BookResponse], status_code=201, summary="创建图书")
async def create(
    body: BookCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """创建图书，分类需存在且未删除"""
    data = body.model_dump()
    data["genre_id"] = str(body.genre_id)
    book = await create_book(db, **data)
    await db.commit()
    return ApiResponse(message="图书创建成功", data=BookResponse.model_validate(book))


@router.get("", response_model=ApiResponse[Page[BookResponse]], summary="图书列表")
async def list_books(
    search: str | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    order_by: str = Query("title", description="排序字段"),
    order: str = Query("asc", pattern=r"^(asc|desc)$"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """图书列表（分页，按书名/作者模糊搜索，白名单字段排序）"""
    books, total = await get_books_paginated(db, page, limit, search, order_by, order)
    return ApiResponse(
        message="获取成功",
        data=Page(
            items=[BookResponse.model_validate(b) for b in books],
            meta=PageMeta.build(total, page, limit),
        ),
    )


@router.get("/genre/{genre_id}", response_model=ApiResponse[list[BookResponse]], summary="按分类获取图书")
async def list_books_by_genre(
    genre_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    books = await get_books_by_genre(db, genre_id)
    return ApiResponse(message="获取成功", data=[BookResponse.model_validate(b) for b in books])


@router.get("/{book_id}", response_model=ApiResponse[BookResponse], summary="图书详情")
async def get_book(
    book_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    book = await get_active_book(db, book_id)
    return ApiResponse(message="获取成功", data=BookResponse.model_validate(book))


@router.patch("/{book_id}", response_model=ApiResponse[BookResponse], summary="更新图书")
async def update(
    book_id: str,
    body: BookUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """部分更新，只修改请求中出现的字段"""
    # 只有 description 允许显式置空，其余字段传 null 视为未修改
    fields = {
        k: v for k, v in body.model_dump(exclude_unset=True).items()
        if v is not None or k == "description"
    }
    if "genre_id" in fields:
        fields["genre_id"] = str(fields["genre_id"])
    book = await update_book(db, book_id, fields)
    await db.commit()
    return ApiResponse(message="图书更新成功", data=BookResponse.model_validate(book))


@router.delete("/{book_id}", response_model=ApiResponse[None], summary="删除图书")
async def delete(
    book_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """软删除图书，历史订单不受影响"""
    await delete_book(db, book_id)
    await db.commit()
    return ApiResponse(message="图书已删除")
