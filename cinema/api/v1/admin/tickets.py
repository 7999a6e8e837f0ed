from uuid import UUID
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session, joinedload, selectinload

from cinema.db.session import get_db
from cinema.api.deps import get_box_office, get_current_admin_user
from cinema.api.errors import unwrap_or_raise
from cinema.api.v1.public.tickets import serialize_ticket
from cinema.models.user import User
from cinema.models.screening import Screening
from cinema.models.ticket import Ticket, TicketNote
from cinema.schemas.ticket import (
    AdminTicket,
    BulkTicketOperation,
    Ticket as TicketSchema,
    TicketCancel,
    TicketNoteCreate,
    TicketNote as TicketNoteSchema,
)
from cinema.schemas.common import BulkOperationResult, PaginatedResponse
from cinema.schemas.user import UserSummary
from cinema.services.box_office import BoxOffice

router = APIRouter(prefix="/admin/tickets", tags=["Admin - Tickets"])


def _serialize_admin_ticket(ticket: Ticket) -> AdminTicket:
    return AdminTicket(
        **serialize_ticket(ticket).model_dump(),
        user=UserSummary.model_validate(ticket.user) if ticket.user else None,
        promo_code=ticket.promo_code.code if ticket.promo_code else None,
        notes=[TicketNoteSchema.model_validate(n) for n in ticket.notes],
    )


@router.get("/", response_model=PaginatedResponse[AdminTicket])
def list_all_tickets(
    # --- Filters ---
    screening_id: Optional[UUID] = Query(None, description="Filter by screening"),
    user_id: Optional[UUID] = Query(None, description="Filter by ticket holder"),
    status: Optional[str] = Query(None, description="Filter by ticket status (Active, Used, Cancelled)"),
    # --- Pagination ---
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    query = db.query(Ticket).options(
        joinedload(Ticket.user),
        joinedload(Ticket.promo_code),
        selectinload(Ticket.notes),
        joinedload(Ticket.screening).joinedload(Screening.movie),
        joinedload(Ticket.screening).joinedload(Screening.room),
    )
    if screening_id:
        query = query.filter(Ticket.screening_id == screening_id)
    if user_id:
        query = query.filter(Ticket.user_id == user_id)
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
        data=[_serialize_admin_ticket(t) for t in tickets],
        total=total,
        page=page,
        limit=limit,
        total_pages=-(-total // limit) if total else 0,
    )


# ---------------------------------------------------------------------------
# Single ticket transitions
# ---------------------------------------------------------------------------


@router.post("/{ticket_id}/check-in", response_model=TicketSchema)
def check_in_ticket(
    ticket_id: UUID,
    current_user: User = Depends(get_current_admin_user),
    box_office: BoxOffice = Depends(get_box_office),
):
    """Mark an Active ticket as Used at the door."""
    return unwrap_or_raise(box_office.check_in(ticket_id))


@router.post("/{ticket_id}/cancel", response_model=TicketSchema)
def cancel_ticket(
    ticket_id: UUID,
    data: Optional[TicketCancel] = None,
    current_user: User = Depends(get_current_admin_user),
    box_office: BoxOffice = Depends(get_box_office),
):
    """Cancel on a customer's behalf. The cancellation window still applies."""
    result = box_office.cancel_ticket(
        ticket_id=ticket_id,
        user_id=None,
        reason=data.reason if data else None,
        as_admin=True,
    )
    return unwrap_or_raise(result)


@router.post("/{ticket_id}/notes", response_model=TicketNoteSchema, status_code=status.HTTP_201_CREATED)
def add_ticket_note(
    ticket_id: UUID,
    data: TicketNoteCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    ticket = db.query(Ticket).filter(Ticket.id == ticket_id).first()
    if not ticket:
        raise HTTPException(status_code=404, detail="Ticket not found")

    note = TicketNote(ticket_id=ticket_id, admin_user_id=current_user.id, note=data.note)
    db.add(note)
    db.commit()
    db.refresh(note)
    return note


# ---------------------------------------------------------------------------
# Bulk actions. Each ticket is processed in its own transaction; failures
# are reported per id and do not stop the batch.
# ---------------------------------------------------------------------------


@router.post("/bulk-cancel", response_model=BulkOperationResult)
def bulk_cancel_tickets(
    data: BulkTicketOperation,
    current_user: User = Depends(get_current_admin_user),
    box_office: BoxOffice = Depends(get_box_office),
):
    return box_office.bulk_cancel(data.ticket_ids, data.reason)


@router.post("/bulk-mark-used", response_model=BulkOperationResult)
def bulk_mark_used(
    data: BulkTicketOperation,
    current_user: User = Depends(get_current_admin_user),
    box_office: BoxOffice = Depends(get_box_office),
):
    return box_office.bulk_mark_used(data.ticket_ids)
