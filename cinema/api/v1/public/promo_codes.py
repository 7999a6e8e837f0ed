from typing import Optional
from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from cinema.db.session import get_db
from cinema.db.types import utcnow
from cinema.api.deps import get_current_user
from cinema.domain.promo import PROMO_MESSAGES, check_promo, compute_discount
from cinema.models.user import User
from cinema.models.promo_code import PromoCode
from cinema.schemas.promo_code import PromoCodeValidation

router = APIRouter(prefix="/promo-codes", tags=["Promo Codes"])


@router.get("/validate/{code}", response_model=PromoCodeValidation)
def validate_promo_code(
    code: str,
    purchase_amount: Optional[Decimal] = Query(None, gt=0, description="Ticket price to check the minimum and compute the discount against"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Read-only check; does not consume a use."""
    promo = db.query(PromoCode).filter(PromoCode.code == code.strip().upper()).first()
    reason = check_promo(promo, purchase_amount, utcnow())
    if reason is not None:
        return PromoCodeValidation(is_valid=False, error_message=PROMO_MESSAGES[reason])

    discount = None
    if purchase_amount is not None:
        discount = compute_discount(purchase_amount, promo.discount_percent, promo.max_discount_amount)

    return PromoCodeValidation(
        is_valid=True,
        discount_percent=promo.discount_percent,
        max_discount_amount=promo.max_discount_amount,
        discount_amount=discount,
    )
