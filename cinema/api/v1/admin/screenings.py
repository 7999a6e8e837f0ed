from uuid import UUID
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from cinema.db.session import get_db
from cinema.api.deps import get_box_office, get_current_admin_user
from cinema.api.errors import unwrap_or_raise
from cinema.models.user import User
from cinema.models.screening import Screening
from cinema.schemas.screening import (
    ScreeningCreate,
    ScreeningUpdate,
    Screening as ScreeningSchema,
)
from cinema.schemas.common import PaginatedResponse
from cinema.services.box_office import BoxOffice

router = APIRouter(prefix="/admin/screenings", tags=["Admin - Screenings"])


@router.post("/", response_model=ScreeningSchema, status_code=status.HTTP_201_CREATED)
def create_screening(
    data: ScreeningCreate,
    current_user: User = Depends(get_current_admin_user),
    box_office: BoxOffice = Depends(get_box_office),
):
    """
    Schedule a single screening.

    Rejected with 409 when it would overlap another active screening in the
    same room. A screening may start exactly when the previous one ends.
    """
    result = box_office.create_screening(
        movie_id=data.movie_id,
        room_id=data.room_id,
        show_time=data.show_time,
        price=data.price,
    )
    return unwrap_or_raise(result)


@router.get("/", response_model=PaginatedResponse[ScreeningSchema])
def list_screenings(
    room_id: Optional[UUID] = Query(None, description="Filter by room"),
    movie_id: Optional[UUID] = Query(None, description="Filter by movie"),
    include_inactive: bool = Query(False),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    query = db.query(Screening)
    if not include_inactive:
        query = query.filter(Screening.is_active == True)
    if room_id:
        query = query.filter(Screening.room_id == room_id)
    if movie_id:
        query = query.filter(Screening.movie_id == movie_id)

    total = query.count()
    screenings = query.order_by(Screening.show_time).offset((page - 1) * limit).limit(limit).all()

    return PaginatedResponse(
        data=screenings,
        total=total,
        page=page,
        limit=limit,
        total_pages=-(-total // limit) if total else 0,
    )


@router.patch("/{id}", response_model=ScreeningSchema)
def update_screening(
    id: UUID,
    data: ScreeningUpdate,
    current_user: User = Depends(get_current_admin_user),
    box_office: BoxOffice = Depends(get_box_office),
):
    """Only screenings without Active tickets can be edited."""
    result = box_office.update_screening(id, **data.model_dump(exclude_unset=True))
    return unwrap_or_raise(result)


@router.delete("/{id}", status_code=status.HTTP_200_OK)
def delete_screening(
    id: UUID,
    current_user: User = Depends(get_current_admin_user),
    box_office: BoxOffice = Depends(get_box_office),
):
    screening = unwrap_or_raise(box_office.deactivate_screening(id))
    return {"id": str(screening.id), "is_active": screening.is_active}
