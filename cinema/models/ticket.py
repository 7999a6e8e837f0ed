import uuid
import enum
from sqlalchemy import Column, String, DECIMAL, ForeignKey, Text, Uuid, Index, text
from sqlalchemy.orm import relationship
from cinema.db.session import Base
from cinema.db.types import UTCDateTime, utcnow


class TicketStatus(str, enum.Enum):
    ACTIVE = "Active"
    USED = "Used"
    CANCELLED = "Cancelled"


_ACTIVE_ONLY = text("status = 'Active'")


class Ticket(Base):
    __tablename__ = "tickets"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    screening_id = Column(Uuid(as_uuid=True), ForeignKey("screenings.id"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    seat_label = Column(String(8), nullable=False)
    price = Column(DECIMAL(10, 2), nullable=False)
    discount_amount = Column(DECIMAL(10, 2), nullable=True)
    promo_code_id = Column(Uuid(as_uuid=True), ForeignKey("promo_codes.id"), nullable=True, index=True)
    status = Column(String(20), nullable=False, default=TicketStatus.ACTIVE.value, index=True)
    purchase_date = Column(UTCDateTime, default=utcnow)
    checked_in_at = Column(UTCDateTime, nullable=True)
    cancelled_at = Column(UTCDateTime, nullable=True)
    refund_reason = Column(Text, nullable=True)

    # Relationships
    screening = relationship("Screening", back_populates="tickets")
    user = relationship("User")
    promo_code = relationship("PromoCode")
    notes = relationship("TicketNote", back_populates="ticket", cascade="all, delete-orphan")

    __table_args__ = (
        # At most one Active ticket per seat, and per user, for a screening
        Index(
            "uq_active_ticket_seat", "screening_id", "seat_label",
            unique=True, postgresql_where=_ACTIVE_ONLY, sqlite_where=_ACTIVE_ONLY,
        ),
        Index(
            "uq_active_ticket_user", "screening_id", "user_id",
            unique=True, postgresql_where=_ACTIVE_ONLY, sqlite_where=_ACTIVE_ONLY,
        ),
    )

    @property
    def amount_paid(self):
        return self.price - (self.discount_amount or 0)


class TicketNote(Base):
    __tablename__ = "ticket_notes"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    ticket_id = Column(Uuid(as_uuid=True), ForeignKey("tickets.id"), nullable=False, index=True)
    admin_user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    note = Column(Text, nullable=False)
    created_at = Column(UTCDateTime, default=utcnow)

    ticket = relationship("Ticket", back_populates="notes")
    admin_user = relationship("User")
