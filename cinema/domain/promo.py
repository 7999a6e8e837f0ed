"""Promo code eligibility and discount arithmetic.

Kept free of the ORM: anything exposing the PromoCode attributes works.
"""

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from cinema.domain.errors import ErrorCode

CENT = Decimal("0.01")


def check_promo(promo, purchase_amount: Optional[Decimal], now: datetime) -> Optional[ErrorCode]:
    """Return None when the code can be redeemed, otherwise the reason it can't."""
    if promo is None or not promo.is_active:
        return ErrorCode.PROMO_INVALID
    if promo.valid_from is not None and promo.valid_from > now:
        return ErrorCode.PROMO_INVALID
    if promo.expires_at is not None and promo.expires_at < now:
        return ErrorCode.PROMO_EXPIRED
    if promo.max_uses is not None and promo.current_uses >= promo.max_uses:
        return ErrorCode.PROMO_EXHAUSTED
    if (
        promo.min_purchase_amount is not None
        and purchase_amount is not None
        and purchase_amount < promo.min_purchase_amount
    ):
        return ErrorCode.PROMO_MINIMUM_NOT_MET
    return None


def compute_discount(
    base_price: Decimal,
    discount_percent: Decimal,
    max_discount_amount: Optional[Decimal] = None,
) -> Decimal:
    """min(base * pct / 100, cap), rounded to cents and never above the base price."""
    discount = Decimal(base_price) * Decimal(discount_percent) / Decimal(100)
    if max_discount_amount is not None:
        discount = min(discount, Decimal(max_discount_amount))
    discount = min(discount, Decimal(base_price))
    return discount.quantize(CENT, rounding=ROUND_HALF_UP)


PROMO_MESSAGES = {
    ErrorCode.PROMO_INVALID: "Invalid promo code.",
    ErrorCode.PROMO_EXPIRED: "This promo code has expired.",
    ErrorCode.PROMO_EXHAUSTED: "This promo code has reached its usage limit.",
    ErrorCode.PROMO_MINIMUM_NOT_MET: "Purchase amount is below the minimum for this promo code.",
}
