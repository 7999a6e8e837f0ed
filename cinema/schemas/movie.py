from typing import Optional
from pydantic import BaseModel, Field, UUID4
from datetime import datetime


class MovieBase(BaseModel):
    title: str
    description: Optional[str] = None
    duration_minutes: int = Field(gt=0, le=24 * 60)


class MovieCreate(MovieBase):
    pass


class MovieUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    duration_minutes: Optional[int] = Field(default=None, gt=0, le=24 * 60)


class Movie(MovieBase):
    id: UUID4
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
