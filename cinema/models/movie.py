import uuid
from sqlalchemy import Column, String, Boolean, Integer, Text, Uuid
from sqlalchemy.orm import relationship
from cinema.db.session import Base
from cinema.db.types import UTCDateTime, utcnow


class Movie(Base):
    __tablename__ = "movies"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    duration_minutes = Column(Integer, nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(UTCDateTime, default=utcnow)

    # Relationships
    screenings = relationship("Screening", back_populates="movie")
