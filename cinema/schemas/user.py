from typing import Optional
from pydantic import BaseModel, EmailStr, UUID4, Field
from datetime import datetime


# Shared properties
class UserBase(BaseModel):
    email: EmailStr
    full_name: str


# Properties to receive via API on creation (POST /auth/register)
class UserCreate(UserBase):
    password: str = Field(min_length=6, max_length=72)


# Properties to receive via API on admin creation (POST /auth/admin/register)
class AdminCreate(UserCreate):
    admin_secret: str


# Properties returned via API
class User(UserBase):
    id: UUID4
    role: str
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


# Compact user for nested responses (admin ticket view)
class UserSummary(BaseModel):
    id: UUID4
    full_name: str
    email: str

    class Config:
        from_attributes = True


class Token(BaseModel):
    access_token: str
    token_type: str
    user: User
