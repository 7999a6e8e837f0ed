from uuid import UUID
from typing import Optional
from datetime import date, datetime, time, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from cinema.db.session import get_db
from cinema.db.types import utcnow
from cinema.models.screening import Screening
from cinema.models.theater import Room
from cinema.models.ticket import Ticket, TicketStatus
from cinema.schemas.common import PaginatedResponse
from cinema.schemas.screening import ScreeningDetail, ScreeningListItem
from cinema.schemas.theater import RoomSummary
from cinema.services.ledger import occupied_seats

router = APIRouter(prefix="/screenings", tags=["Screenings"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _serialize_screening(screening: Screening, sold: int) -> ScreeningListItem:
    room = screening.room
    return ScreeningListItem(
        id=screening.id,
        movie_id=screening.movie_id,
        room_id=screening.room_id,
        show_time=screening.show_time,
        price=screening.price,
        is_active=screening.is_active,
        schedule_id=screening.schedule_id,
        movie_title=screening.movie.title,
        duration_minutes=screening.movie.duration_minutes,
        room=RoomSummary.model_validate(room),
        total_seats=room.capacity,
        available_seats=room.capacity - sold,
    )


# ---------------------------------------------------------------------------
# Public: upcoming screenings with availability
# ---------------------------------------------------------------------------


@router.get("/", response_model=PaginatedResponse[ScreeningListItem])
def list_screenings(
    movie_id: Optional[UUID] = Query(None, description="Filter by movie"),
    theater_id: Optional[UUID] = Query(None, description="Filter by theater"),
    date: Optional[date] = Query(None, description="Filter by UTC show date (YYYY-MM-DD)"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """Active screenings that have not started yet, soonest first."""
    sold = (
        db.query(Ticket.screening_id, func.count(Ticket.id).label("sold"))
        .filter(Ticket.status == TicketStatus.ACTIVE.value)
        .group_by(Ticket.screening_id)
        .subquery()
    )
    query = (
        db.query(Screening, func.coalesce(sold.c.sold, 0))
        .join(Room, Room.id == Screening.room_id)
        .outerjoin(sold, sold.c.screening_id == Screening.id)
        .options(joinedload(Screening.movie), joinedload(Screening.room))
        .filter(Screening.is_active == True, Screening.show_time > utcnow())  # noqa: E712
    )
    if movie_id:
        query = query.filter(Screening.movie_id == movie_id)
    if theater_id:
        query = query.filter(Room.theater_id == theater_id)
    if date:
        day_start = datetime.combine(date, time.min, tzinfo=timezone.utc)
        query = query.filter(
            Screening.show_time >= day_start,
            Screening.show_time < day_start + timedelta(days=1),
        )

    total = query.count()
    rows = query.order_by(Screening.show_time).offset((page - 1) * limit).limit(limit).all()

    return PaginatedResponse(
        data=[_serialize_screening(screening, sold_count) for screening, sold_count in rows],
        total=total,
        page=page,
        limit=limit,
        total_pages=-(-total // limit) if total else 0,
    )


# ---------------------------------------------------------------------------
# Public: seat map (seat selection screen)
# ---------------------------------------------------------------------------


@router.get("/{screening_id}", response_model=ScreeningDetail)
def get_screening(
    screening_id: UUID,
    db: Session = Depends(get_db),
):
    """Room layout plus the seats already held by Active tickets."""
    screening = (
        db.query(Screening)
        .options(joinedload(Screening.movie), joinedload(Screening.room))
        .filter(Screening.id == screening_id)
        .first()
    )
    if not screening:
        raise HTTPException(status_code=404, detail="Screening not found")

    taken = occupied_seats(db, screening_id)
    item = _serialize_screening(screening, len(taken))
    return ScreeningDetail(**item.model_dump(), occupied_seats=taken)
