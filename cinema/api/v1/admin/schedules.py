from uuid import UUID
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from cinema.db.session import get_db
from cinema.api.deps import get_box_office, get_current_admin_user
from cinema.api.errors import unwrap_or_raise
from cinema.domain.errors import ErrorCode
from cinema.models.user import User
from cinema.models.screening import Screening, ScreeningSchedule
from cinema.schemas.screening import (
    ScheduleCreate,
    ScheduleCreateResponse,
    ScheduleConflict,
    Schedule as ScheduleSchema,
    ScheduleDeleteResponse,
)
from cinema.schemas.common import PaginatedResponse
from cinema.services.box_office import BoxOffice

router = APIRouter(prefix="/admin/schedules", tags=["Admin - Schedules"])


@router.post("/", response_model=ScheduleCreateResponse, status_code=status.HTTP_201_CREATED)
def create_schedule(
    data: ScheduleCreate,
    current_user: User = Depends(get_current_admin_user),
    box_office: BoxOffice = Depends(get_box_office),
):
    """
    Expand a recurring schedule into screenings.

    Every day in [start_date, end_date] whose weekday is in days_of_week gets
    one screening per show time. Slots already in the past are skipped;
    slots that would overlap an existing screening in the room are reported
    under `conflicts` and skipped. The rest are created.
    """
    try:
        definition = data.to_definition()
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"error": ErrorCode.VALIDATION_FAILED.value, "message": str(exc)},
        )

    report = unwrap_or_raise(box_office.expand_schedule(definition))
    conflicts = [ScheduleConflict(date=d, time=t) for d, t in report.conflicts]
    return ScheduleCreateResponse(
        schedule_id=report.schedule_id,
        screenings_created=report.created_count,
        conflicts=conflicts,
        message=f"Created {report.created_count} screening(s); {len(conflicts)} conflict(s) skipped",
    )


@router.get("/", response_model=PaginatedResponse[ScheduleSchema])
def list_schedules(
    room_id: Optional[UUID] = Query(None, description="Filter by room"),
    movie_id: Optional[UUID] = Query(None, description="Filter by movie"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    query = (
        db.query(ScreeningSchedule, func.count(Screening.id).label("screening_count"))
        .outerjoin(
            Screening,
            (Screening.schedule_id == ScreeningSchedule.id) & (Screening.is_active == True),
        )
        .filter(ScreeningSchedule.is_active == True)
        .group_by(ScreeningSchedule.id)
    )
    if room_id:
        query = query.filter(ScreeningSchedule.room_id == room_id)
    if movie_id:
        query = query.filter(ScreeningSchedule.movie_id == movie_id)

    total = query.count()
    rows = (
        query.order_by(ScreeningSchedule.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    items = []
    for schedule, screening_count in rows:
        item = ScheduleSchema.model_validate(schedule)
        item.screening_count = screening_count
        items.append(item)

    return PaginatedResponse(
        data=items,
        total=total,
        page=page,
        limit=limit,
        total_pages=-(-total // limit) if total else 0,
    )


@router.delete("/{id}", response_model=ScheduleDeleteResponse)
def delete_schedule(
    id: UUID,
    current_user: User = Depends(get_current_admin_user),
    box_office: BoxOffice = Depends(get_box_office),
):
    """Deactivate the schedule's future screenings. Screenings with Active tickets are kept."""
    report = unwrap_or_raise(box_office.delete_schedule(id))
    return ScheduleDeleteResponse(
        schedule_id=report.schedule_id,
        deactivated=report.deactivated,
        skipped=report.skipped,
    )
