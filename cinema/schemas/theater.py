from typing import Optional, List
from pydantic import BaseModel, Field, UUID4
from datetime import datetime

from cinema.domain.seat_grid import MAX_ROWS


# Room Schemas
class RoomBase(BaseModel):
    name: str
    room_number: int = Field(ge=1)
    rows: int = Field(ge=1, le=MAX_ROWS)
    seats_per_row: int = Field(ge=1)


class RoomCreate(RoomBase):
    pass


class RoomUpdate(BaseModel):
    name: Optional[str] = None
    rows: Optional[int] = Field(default=None, ge=1, le=MAX_ROWS)
    seats_per_row: Optional[int] = Field(default=None, ge=1)


class Room(RoomBase):
    id: UUID4
    theater_id: UUID4
    capacity: int
    is_active: bool

    class Config:
        from_attributes = True


# Compact room for nested responses (screening, seat map)
class RoomSummary(BaseModel):
    id: UUID4
    name: str
    room_number: int
    rows: int
    seats_per_row: int

    class Config:
        from_attributes = True


# Theater Schemas
class TheaterBase(BaseModel):
    name: str
    address: Optional[str] = None


class TheaterCreate(TheaterBase):
    # Rooms to create alongside the theater, numbered from 1
    rooms: List[RoomCreate] = []


class TheaterUpdate(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None


class Theater(TheaterBase):
    id: UUID4
    is_active: bool
    created_at: datetime
    rooms: List[Room] = []

    class Config:
        from_attributes = True
