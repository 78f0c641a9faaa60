from datetime import datetime

from pydantic import BaseModel, Field


class GenreCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class GenreUpdate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class GenreBrief(BaseModel):
    id: str
    name: str

    model_config = {"from_attributes": True}


class GenreResponse(BaseModel):
    id: str
    name: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
