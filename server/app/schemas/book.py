from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.genre import GenreBrief


class BookCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    writer: str = Field(..., min_length=1, max_length=255)
    publisher: str = Field(..., min_length=1, max_length=255)
    publication_year: int = Field(..., ge=0, le=9999)
    description: str | None = None
    price: float = Field(..., gt=0)
    stock_quantity: int = Field(..., ge=0)
    genre_id: UUID


class BookUpdate(BaseModel):
    """部分更新，未传的字段保持不变"""
    title: str | None = Field(None, min_length=1, max_length=255)
    writer: str | None = Field(None, min_length=1, max_length=255)
    publisher: str | None = Field(None, min_length=1, max_length=255)
    publication_year: int | None = Field(None, ge=0, le=9999)
    description: str | None = None
    price: float | None = Field(None, gt=0)
    stock_quantity: int | None = Field(None, ge=0)
    genre_id: UUID | None = None


class BookBrief(BaseModel):
    id: str
    title: str
    price: float

    model_config = {"from_attributes": True}


class BookResponse(BaseModel):
    id: str
    title: str
    writer: str
    publisher: str
    publication_year: int
    description: str | None
    price: float
    stock_quantity: int
    genre_id: str
    genre: GenreBrief | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
