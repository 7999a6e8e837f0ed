from typing import Optional, List
from pydantic import BaseModel, Field, UUID4
from decimal import Decimal
from datetime import datetime

from cinema.schemas.user import UserSummary


# Ticket: Purchase (POST /tickets/purchase)
class TicketPurchase(BaseModel):
    screening_id: UUID4
    seat_label: str = Field(min_length=2, max_length=8, examples=["A1", "B12"])
    promo_code: Optional[str] = None


class TicketCancel(BaseModel):
    reason: Optional[str] = None


# Ticket: full response
class Ticket(BaseModel):
    id: UUID4
    screening_id: UUID4
    user_id: UUID4
    seat_label: str
    price: Decimal
    discount_amount: Optional[Decimal] = None
    amount_paid: Decimal
    status: str
    purchase_date: datetime
    checked_in_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    refund_reason: Optional[str] = None

    class Config:
        from_attributes = True


# Ticket with screening context (GET /tickets/me)
class TicketWithScreening(Ticket):
    movie_title: str
    room_name: str
    show_time: datetime


class TicketNoteCreate(BaseModel):
    note: str = Field(min_length=1)


class TicketNote(BaseModel):
    id: UUID4
    ticket_id: UUID4
    admin_user_id: UUID4
    note: str
    created_at: datetime

    class Config:
        from_attributes = True


# Ticket: Admin view (GET /admin/tickets, includes user info)
class AdminTicket(TicketWithScreening):
    user: Optional[UserSummary] = None
    promo_code: Optional[str] = None
    notes: List[TicketNote] = []


# Bulk admin actions
class BulkTicketOperation(BaseModel):
    ticket_ids: List[UUID4] = Field(min_length=1, max_length=500)
    reason: Optional[str] = None
