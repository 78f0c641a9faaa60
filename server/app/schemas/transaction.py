from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.book import BookBrief


class TransactionItemCreate(BaseModel):
    book_id: UUID
    quantity: int = Field(..., gt=0)


class TransactionCreate(BaseModel):
    """下单请求；订单归属始终取自 Token，不接受请求体中的 user_id"""
    items: list[TransactionItemCreate] = Field(..., min_length=1)

    model_config = {"extra": "forbid"}


class TransactionUser(BaseModel):
    id: str
    email: str

    model_config = {"from_attributes": True}


class TransactionItemResponse(BaseModel):
    id: str
    book_id: str
    title: str
    quantity: int
    unit_price: float
    subtotal: float
    book: BookBrief


class TransactionResponse(BaseModel):
    id: str
    user_id: str
    user: TransactionUser | None = None
    created_at: datetime
    total_price: float
    items: list[TransactionItemResponse]


class TransactionStatistics(BaseModel):
    total_transactions: int
    total_books_sold: int
    total_revenue: float
