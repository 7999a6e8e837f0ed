from typing import Optional, List
from pydantic import BaseModel, Field, UUID4, field_validator, model_validator
from decimal import Decimal
from datetime import date, datetime, time

from cinema.db.types import as_utc
from cinema.domain.schedule import ScheduleDefinition, parse_show_time
from cinema.schemas.theater import RoomSummary


# Screening: Create (admin POST /admin/screenings)
class ScreeningCreate(BaseModel):
    movie_id: UUID4
    room_id: UUID4
    show_time: datetime
    price: Decimal = Field(gt=0, le=1000)

    @field_validator("show_time")
    @classmethod
    def normalize_show_time(cls, v):
        return as_utc(v)


# Screening: Update (admin PATCH /admin/screenings/{id})
class ScreeningUpdate(BaseModel):
    movie_id: Optional[UUID4] = None
    room_id: Optional[UUID4] = None
    show_time: Optional[datetime] = None
    price: Optional[Decimal] = Field(default=None, gt=0, le=1000)

    @field_validator("show_time")
    @classmethod
    def normalize_show_time(cls, v):
        return as_utc(v) if v is not None else v


# Screening: DB response
class Screening(BaseModel):
    id: UUID4
    movie_id: UUID4
    room_id: UUID4
    show_time: datetime
    price: Decimal
    is_active: bool
    schedule_id: Optional[UUID4] = None

    class Config:
        from_attributes = True


# Screening listing entry with availability (GET /screenings)
class ScreeningListItem(Screening):
    movie_title: str
    duration_minutes: int
    room: RoomSummary
    total_seats: int
    available_seats: int


# Seat map (GET /screenings/{id})
class ScreeningDetail(ScreeningListItem):
    occupied_seats: List[str]


# ---------------------------------------------------------------------------
# Recurring schedules
# ---------------------------------------------------------------------------

class ScheduleCreate(BaseModel):
    """
    Request body for POST /admin/schedules.

    days_of_week uses 0 = Sunday ... 6 = Saturday. show_times are "HH:MM"
    strings in UTC; a malformed entry rejects the whole definition.
    """
    movie_id: UUID4
    room_id: UUID4
    start_date: date
    end_date: date
    show_times: List[str] = Field(min_length=1)
    days_of_week: List[int] = Field(default=[0, 1, 2, 3, 4, 5, 6], min_length=1)
    price: Decimal = Field(gt=0, le=1000)

    @field_validator("show_times")
    @classmethod
    def check_show_times(cls, v):
        for entry in v:
            parse_show_time(entry)
        return v

    @field_validator("days_of_week")
    @classmethod
    def check_days(cls, v):
        if any(d < 0 or d > 6 for d in v):
            raise ValueError("days_of_week values must be between 0 (Sunday) and 6 (Saturday)")
        return v

    @model_validator(mode="after")
    def check_range(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self

    def to_definition(self) -> ScheduleDefinition:
        return ScheduleDefinition.build(
            movie_id=self.movie_id,
            room_id=self.room_id,
            start_date=self.start_date,
            end_date=self.end_date,
            show_times=self.show_times,
            days_of_week=self.days_of_week,
            price=self.price,
        )


class ScheduleConflict(BaseModel):
    date: date
    time: time


class ScheduleCreateResponse(BaseModel):
    schedule_id: UUID4
    screenings_created: int
    conflicts: List[ScheduleConflict]
    message: str


class Schedule(BaseModel):
    id: UUID4
    movie_id: UUID4
    room_id: UUID4
    start_date: date
    end_date: date
    show_times: List[str]
    days_of_week: List[int]
    price: Decimal
    is_active: bool
    created_at: datetime
    screening_count: int = 0

    class Config:
        from_attributes = True


class ScheduleDeleteResponse(BaseModel):
    schedule_id: UUID4
    deactivated: int
    skipped: int
