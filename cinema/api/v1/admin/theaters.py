from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session, selectinload

from cinema.db.session import get_db
from cinema.api.deps import get_current_admin_user
from cinema.models.user import User
from cinema.models.theater import Theater, Room
from cinema.models.screening import Screening
from cinema.models.ticket import Ticket, TicketStatus
from cinema.schemas.theater import (
    TheaterCreate,
    TheaterUpdate,
    Theater as TheaterSchema,
    RoomCreate,
    RoomUpdate,
    Room as RoomSchema,
)
from cinema.schemas.common import PaginatedResponse

router = APIRouter(prefix="/admin/theaters", tags=["Admin - Theaters"])
room_router = APIRouter(prefix="/admin/rooms", tags=["Admin - Rooms"])


def _room_number_taken(db: Session, theater_id: UUID, room_number: int) -> bool:
    return (
        db.query(Room.id)
        .filter(Room.theater_id == theater_id, Room.room_number == room_number)
        .first()
        is not None
    )


def _room_has_sold_tickets(db: Session, room_id: UUID) -> bool:
    return (
        db.query(Ticket.id)
        .join(Screening, Screening.id == Ticket.screening_id)
        .filter(
            Screening.room_id == room_id,
            Ticket.status != TicketStatus.CANCELLED.value,
        )
        .first()
        is not None
    )


# ---------------------------------------------------------------------------
# Theater CRUD
# ---------------------------------------------------------------------------


@router.post("/", response_model=TheaterSchema, status_code=status.HTTP_201_CREATED)
def create_theater(
    data: TheaterCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    numbers = [r.room_number for r in data.rooms]
    if len(numbers) != len(set(numbers)):
        raise HTTPException(status_code=400, detail="Room numbers must be unique within a theater")

    theater = Theater(**data.model_dump(exclude={"rooms"}))
    theater.rooms = [Room(**room.model_dump()) for room in data.rooms]
    db.add(theater)
    db.commit()
    db.refresh(theater)
    return theater


@router.get("/", response_model=PaginatedResponse[TheaterSchema])
def list_theaters(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    query = db.query(Theater).filter(Theater.is_active == True)
    total = query.count()
    theaters = (
        query.options(selectinload(Theater.rooms))
        .order_by(Theater.name)
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return PaginatedResponse(
        data=theaters,
        total=total,
        page=page,
        limit=limit,
        total_pages=-(-total // limit) if total else 0,
    )


@router.patch("/{id}", response_model=TheaterSchema)
def update_theater(
    id: UUID,
    data: TheaterUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    theater = db.query(Theater).filter(Theater.id == id, Theater.is_active == True).first()
    if not theater:
        raise HTTPException(status_code=404, detail="Theater not found")

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(theater, field, value)

    db.commit()
    db.refresh(theater)
    return theater


@router.delete("/{id}", status_code=status.HTTP_200_OK)
def delete_theater(
    id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    theater = db.query(Theater).filter(Theater.id == id, Theater.is_active == True).first()
    if not theater:
        raise HTTPException(status_code=404, detail="Theater not found")

    # Existing screenings stay on sale; an inactive theater only stops new scheduling
    theater.is_active = False
    db.query(Room).filter(Room.theater_id == id, Room.is_active == True).update(
        {"is_active": False}
    )
    db.commit()
    return {"id": str(id), "is_active": False}


# ---------------------------------------------------------------------------
# Room CRUD (nested under theaters for create/list, flat for update/delete)
# ---------------------------------------------------------------------------


@router.post("/{theater_id}/rooms", response_model=RoomSchema, status_code=status.HTTP_201_CREATED)
def create_room(
    theater_id: UUID,
    data: RoomCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    theater = db.query(Theater).filter(Theater.id == theater_id, Theater.is_active == True).first()
    if not theater:
        raise HTTPException(status_code=404, detail="Theater not found")
    if _room_number_taken(db, theater_id, data.room_number):
        raise HTTPException(status_code=400, detail=f"Room number {data.room_number} already exists")

    room = Room(theater_id=theater_id, **data.model_dump())
    db.add(room)
    db.commit()
    db.refresh(room)
    return room


@router.get("/{theater_id}/rooms", response_model=list[RoomSchema])
def list_rooms(
    theater_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    theater = db.query(Theater).filter(Theater.id == theater_id).first()
    if not theater:
        raise HTTPException(status_code=404, detail="Theater not found")

    return (
        db.query(Room)
        .filter(Room.theater_id == theater_id, Room.is_active == True)
        .order_by(Room.room_number)
        .all()
    )


@room_router.patch("/{id}", response_model=RoomSchema)
def update_room(
    id: UUID,
    data: RoomUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    room = db.query(Room).filter(Room.id == id, Room.is_active == True).first()
    if not room:
        raise HTTPException(status_code=404, detail="Room not found")

    changes = data.model_dump(exclude_unset=True)
    resized = any(
        field in changes and changes[field] != getattr(room, field)
        for field in ("rows", "seats_per_row")
    )
    if resized and _room_has_sold_tickets(db, id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Room dimensions are fixed once tickets have been sold",
        )

    for field, value in changes.items():
        setattr(room, field, value)

    db.commit()
    db.refresh(room)
    return room


@room_router.delete("/{id}", status_code=status.HTTP_200_OK)
def delete_room(
    id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    room = db.query(Room).filter(Room.id == id, Room.is_active == True).first()
    if not room:
        raise HTTPException(status_code=404, detail="Room not found")

    room.is_active = False
    db.commit()
    return {"id": str(id), "is_active": False}
