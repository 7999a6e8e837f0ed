import uuid
from sqlalchemy import Column, Boolean, Date, DECIMAL, ForeignKey, JSON, Uuid, Index
from sqlalchemy.orm import relationship
from cinema.db.session import Base
from cinema.db.types import UTCDateTime, utcnow


class Screening(Base):
    __tablename__ = "screenings"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    movie_id = Column(Uuid(as_uuid=True), ForeignKey("movies.id"), nullable=False, index=True)
    room_id = Column(Uuid(as_uuid=True), ForeignKey("rooms.id"), nullable=False)
    show_time = Column(UTCDateTime, nullable=False)
    price = Column(DECIMAL(10, 2), nullable=False)
    is_active = Column(Boolean, default=True)
    schedule_id = Column(Uuid(as_uuid=True), ForeignKey("screening_schedules.id"), nullable=True, index=True)
    created_at = Column(UTCDateTime, default=utcnow)

    # Relationships
    movie = relationship("Movie", back_populates="screenings")
    room = relationship("Room", back_populates="screenings")
    schedule = relationship("ScreeningSchedule", back_populates="screenings")
    tickets = relationship("Ticket", back_populates="screening")

    __table_args__ = (
        Index("ix_screenings_room_show_time", "room_id", "show_time"),
    )


class ScreeningSchedule(Base):
    """Recurrence definition a batch of screenings was expanded from."""

    __tablename__ = "screening_schedules"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    movie_id = Column(Uuid(as_uuid=True), ForeignKey("movies.id"), nullable=False)
    room_id = Column(Uuid(as_uuid=True), ForeignKey("rooms.id"), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    show_times = Column(JSON, nullable=False)    # ["10:00", "18:30"]
    days_of_week = Column(JSON, nullable=False)  # [0..6], 0 = Sunday
    price = Column(DECIMAL(10, 2), nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(UTCDateTime, default=utcnow)

    movie = relationship("Movie")
    room = relationship("Room")
    screenings = relationship("Screening", back_populates="schedule")
