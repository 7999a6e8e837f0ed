from typing import Optional
from pydantic import BaseModel, Field, UUID4, field_validator
from decimal import Decimal
from datetime import datetime


class PromoCodeBase(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    description: Optional[str] = None
    discount_percent: Decimal = Field(gt=0, le=100)
    max_discount_amount: Optional[Decimal] = Field(default=None, ge=0)
    max_uses: Optional[int] = Field(default=None, ge=1)
    min_purchase_amount: Optional[Decimal] = Field(default=None, ge=0)
    valid_from: Optional[datetime] = None
    expires_at: Optional[datetime] = None

    @field_validator("code")
    @classmethod
    def upper_code(cls, v):
        return v.strip().upper()


class PromoCodeCreate(PromoCodeBase):
    pass


class PromoCodeUpdate(BaseModel):
    code: Optional[str] = Field(default=None, min_length=1, max_length=50)
    description: Optional[str] = None
    discount_percent: Optional[Decimal] = Field(default=None, gt=0, le=100)
    max_discount_amount: Optional[Decimal] = Field(default=None, ge=0)
    max_uses: Optional[int] = Field(default=None, ge=1)
    min_purchase_amount: Optional[Decimal] = Field(default=None, ge=0)
    valid_from: Optional[datetime] = None
    expires_at: Optional[datetime] = None

    @field_validator("code")
    @classmethod
    def upper_code(cls, v):
        return v.strip().upper() if v is not None else v


class PromoCode(PromoCodeBase):
    id: UUID4
    current_uses: int
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


# Response for GET /promo-codes/validate/{code}
class PromoCodeValidation(BaseModel):
    is_valid: bool
    error_message: Optional[str] = None
    discount_percent: Optional[Decimal] = None
    max_discount_amount: Optional[Decimal] = None
    discount_amount: Optional[Decimal] = None  # only when purchase_amount is given
