from uuid import UUID
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session, joinedload

from cinema.db.session import get_db
from cinema.api.deps import get_box_office, get_current_user
from cinema.api.errors import unwrap_or_raise
from cinema.models.user import User
from cinema.models.screening import Screening
from cinema.models.ticket import Ticket
from cinema.schemas.common import PaginatedResponse
from cinema.schemas.ticket import (
    Ticket as TicketSchema,
    TicketCancel,
    TicketPurchase,
    TicketWithScreening,
)
from cinema.services.box_office import BoxOffice

router = APIRouter(prefix="/tickets", tags=["Tickets"])


def serialize_ticket(ticket: Ticket) -> TicketWithScreening:
    screening = ticket.screening
    return TicketWithScreening(
        **TicketSchema.model_validate(ticket).model_dump(),
        movie_title=screening.movie.title,
        room_name=screening.room.name,
        show_time=screening.show_time,
    )


def _ticket_query(db: Session):
    return db.query(Ticket).options(
        joinedload(Ticket.screening).joinedload(Screening.movie),
        joinedload(Ticket.screening).joinedload(Screening.room),
    )


# ---------------------------------------------------------------------------
# POST /tickets/purchase
# ---------------------------------------------------------------------------


@router.post("/purchase", response_model=TicketSchema, status_code=status.HTTP_201_CREATED)
def purchase_ticket(
    data: TicketPurchase,
    current_user: User = Depends(get_current_user),
    box_office: BoxOffice = Depends(get_box_office),
):
    """
    Buy one seat for a screening.

    - The seat label is a row letter plus seat number, e.g. `A1`.
    - A user may hold one Active ticket per screening.
    - An unusable promo code does not fail the purchase; the ticket is
      sold at full price.
    """
    result = box_office.book_seat(
        screening_id=data.screening_id,
        seat_label=data.seat_label,
        user_id=current_user.id,
        promo_code=data.promo_code,
    )
    return unwrap_or_raise(result)


# ---------------------------------------------------------------------------
# GET /tickets/me
# ---------------------------------------------------------------------------


@router.get("/me", response_model=PaginatedResponse[TicketWithScreening])
def list_my_tickets(
    status: Optional[str] = Query(None, description="Filter by ticket status (Active, Used, Cancelled)"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = _ticket_query(db).filter(Ticket.user_id == current_user.id)
    if status:
        query = query.filter(Ticket.status == status)

    total = query.count()
    tickets = (
        query.order_by(Ticket.purchase_date.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return PaginatedResponse(
        data=[serialize_ticket(t) for t in tickets],
        total=total,
        page=page,
        limit=limit,
        total_pages=-(-total // limit) if total else 0,
    )


# ---------------------------------------------------------------------------
# GET /tickets/{id}
# ---------------------------------------------------------------------------


@router.get("/{ticket_id}", response_model=TicketWithScreening)
def get_ticket(
    ticket_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ticket = _ticket_query(db).filter(Ticket.id == ticket_id).first()
    if not ticket or (ticket.user_id != current_user.id and current_user.role != "admin"):
        raise HTTPException(status_code=404, detail="Ticket not found")
    return serialize_ticket(ticket)


# ---------------------------------------------------------------------------
# POST /tickets/{id}/cancel
# ---------------------------------------------------------------------------


@router.post("/{ticket_id}/cancel", response_model=TicketSchema)
def cancel_ticket(
    ticket_id: UUID,
    data: Optional[TicketCancel] = None,
    current_user: User = Depends(get_current_user),
    box_office: BoxOffice = Depends(get_box_office),
):
    """Cancel your own ticket. Allowed until the UTC day before the screening."""
    result = box_office.cancel_ticket(
        ticket_id=ticket_id,
        user_id=current_user.id,
        reason=data.reason if data else None,
    )
    return unwrap_or_raise(result)
