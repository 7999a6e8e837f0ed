from uuid import UUID
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from cinema.db.session import get_db
from cinema.api.deps import get_current_admin_user
from cinema.models.user import User
from cinema.models.promo_code import PromoCode
from cinema.schemas.promo_code import PromoCodeCreate, PromoCodeUpdate, PromoCode as PromoCodeSchema
from cinema.schemas.common import PaginatedResponse

router = APIRouter(prefix="/admin/promo-codes", tags=["Admin - Promo Codes"])


def _get_promo_or_404(db: Session, id: UUID) -> PromoCode:
    promo = db.query(PromoCode).filter(PromoCode.id == id).first()
    if not promo:
        raise HTTPException(status_code=404, detail="Promo code not found")
    return promo


def _ensure_code_free(db: Session, code: str, exclude_id: Optional[UUID] = None) -> None:
    query = db.query(PromoCode.id).filter(PromoCode.code == code)
    if exclude_id:
        query = query.filter(PromoCode.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=400, detail=f"Promo code '{code}' already exists")


@router.post("/", response_model=PromoCodeSchema, status_code=status.HTTP_201_CREATED)
def create_promo_code(
    data: PromoCodeCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    _ensure_code_free(db, data.code)
    promo = PromoCode(**data.model_dump(), created_by=current_user.id)
    db.add(promo)
    db.commit()
    db.refresh(promo)
    return promo


@router.get("/", response_model=PaginatedResponse[PromoCodeSchema])
def list_promo_codes(
    is_active: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    query = db.query(PromoCode)
    if is_active is not None:
        query = query.filter(PromoCode.is_active == is_active)

    total = query.count()
    promos = query.order_by(PromoCode.created_at.desc()).offset((page - 1) * limit).limit(limit).all()

    return PaginatedResponse(
        data=promos,
        total=total,
        page=page,
        limit=limit,
        total_pages=-(-total // limit) if total else 0,
    )


@router.get("/{id}", response_model=PromoCodeSchema)
def get_promo_code(
    id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    return _get_promo_or_404(db, id)


@router.patch("/{id}", response_model=PromoCodeSchema)
def update_promo_code(
    id: UUID,
    data: PromoCodeUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    promo = _get_promo_or_404(db, id)
    changes = data.model_dump(exclude_unset=True)
    if changes.get("code"):
        _ensure_code_free(db, changes["code"], exclude_id=id)

    for field, value in changes.items():
        setattr(promo, field, value)

    db.commit()
    db.refresh(promo)
    return promo


@router.post("/{id}/toggle", response_model=PromoCodeSchema)
def toggle_promo_code(
    id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    promo = _get_promo_or_404(db, id)
    promo.is_active = not promo.is_active
    db.commit()
    db.refresh(promo)
    return promo


@router.delete("/{id}", status_code=status.HTTP_200_OK)
def delete_promo_code(
    id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    # Soft delete: redeemed tickets keep pointing at the code
    promo = _get_promo_or_404(db, id)
    promo.is_active = False
    db.commit()
    return {"id": str(id), "is_active": False}
