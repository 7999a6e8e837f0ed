import uuid
from sqlalchemy import Column, String, Boolean, Integer, ForeignKey, Text, Uuid, UniqueConstraint
from sqlalchemy.orm import relationship
from cinema.db.session import Base
from cinema.db.types import UTCDateTime, utcnow


class Theater(Base):
    __tablename__ = "theaters"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    address = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(UTCDateTime, default=utcnow)

    # Relationships
    rooms = relationship("Room", back_populates="theater", cascade="all, delete-orphan")


class Room(Base):
    __tablename__ = "rooms"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    theater_id = Column(Uuid(as_uuid=True), ForeignKey("theaters.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    room_number = Column(Integer, nullable=False)
    rows = Column(Integer, nullable=False)
    seats_per_row = Column(Integer, nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(UTCDateTime, default=utcnow)

    # Relationships
    theater = relationship("Theater", back_populates="rooms")
    screenings = relationship("Screening", back_populates="room")

    __table_args__ = (
        UniqueConstraint("theater_id", "room_number", name="uq_room_number_per_theater"),
    )

    @property
    def capacity(self) -> int:
        return self.rows * self.seats_per_row
