from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.models.user import User
from app.schemas.common import ApiResponse, Page, PageMeta
from app.schemas.genre import GenreCreate, GenreUpdate, GenreResponse
from app.services.genre_service import (
    create_genre,
    get_genres_paginated,
    get_active_genre,
    update_genre,
    delete_genre,
)
from app.utils.deps import get_current_user

router = APIRouter(prefix="/genres", tags=["分类"])


@router.post("", response_model=ApiResponse[GenreResponse], status_code=201, summary="创建分类")
async def create(
    body: GenreCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    genre = await create_genre(db, body.name)
    await db.commit()
    return ApiResponse(message="分类创建成功", data=GenreResponse.model_validate(genre))


@router.get("", response_model=ApiResponse[Page[GenreResponse]], summary="分类列表")
async def list_genres(
    search: str | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """分类列表（分页，按名称模糊搜索）"""
    genres, total = await get_genres_paginated(db, page, limit, search)
    return ApiResponse(
        message="获取成功",
        data=Page(
            items=[GenreResponse.model_validate(g) for g in genres],
            meta=PageMeta.build(total, page, limit),
        ),
    )


@router.get("/{genre_id}", response_model=ApiResponse[GenreResponse], summary="分类详情")
async def get_genre(
    genre_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    genre = await get_active_genre(db, genre_id)
    return ApiResponse(message="获取成功", data=GenreResponse.model_validate(genre))


@router.patch("/{genre_id}", response_model=ApiResponse[GenreResponse], summary="更新分类")
async def update(
    genre_id: str,
    body: GenreUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    genre = await update_genre(db, genre_id, body.name)
    await db.commit()
    return ApiResponse(message="分类更新成功", data=GenreResponse.model_validate(genre))


@router.delete("/{genre_id}", response_model=ApiResponse[None], summary="删除分类")
async def delete(
    genre_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """软删除分类"""
    await delete_genre(db, genre_id)
    await db.commit()
    return ApiResponse(message="分类已删除")
