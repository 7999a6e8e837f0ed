import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from cinema.db.types import utcnow
from cinema.db.unit_of_work import UnitOfWork
from cinema.domain.errors import (
    AlreadyFinalizedError,
    CancellationWindowClosedError,
    DuplicatePurchaseError,
    InvalidSeatError,
    NotOwnerError,
    ScreeningInactiveError,
    ScreeningInPastError,
    ScreeningNotFoundError,
    SeatTakenError,
    TicketNotFoundError,
)
from cinema.domain.promo import check_promo, compute_discount
from cinema.models.promo_code import PromoCode
from cinema.models.screening import Screening
from cinema.models.ticket import Ticket, TicketStatus
from cinema.services.catalog import CatalogLookup, SqlCatalog

logger = logging.getLogger(__name__)

ACTIVE = TicketStatus.ACTIVE.value


def has_active_tickets(db: Session, screening_id: UUID) -> bool:
    return (
        db.query(Ticket.id)
        .filter(Ticket.screening_id == screening_id, Ticket.status == ACTIVE)
        .first()
        is not None
    )


def occupied_seats(db: Session, screening_id: UUID) -> List[str]:
    rows = (
        db.query(Ticket.seat_label)
        .filter(Ticket.screening_id == screening_id, Ticket.status == ACTIVE)
        .order_by(Ticket.seat_label)
        .all()
    )
    return [label for (label,) in rows]


class TicketLedger:
    """
    Ticket lifecycle for a screening.

    Every mutation first locks the screening row, so two purchases for the
    same screening never interleave their seat/user checks with each other's
    inserts. The partial unique indexes on ``tickets`` back this up at the
    database level.
    """

    def __init__(
        self,
        catalog_factory: Callable[[Session], CatalogLookup] = SqlCatalog,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._catalog_factory = catalog_factory
        self._clock = clock

    # -----------------------------------------------------------------------
    # Booking
    # -----------------------------------------------------------------------

    def book(
        self,
        uow: UnitOfWork,
        screening_id: UUID,
        seat_label: str,
        user_id: UUID,
        promo_code: Optional[str] = None,
    ) -> Ticket:
        screening: Optional[Screening] = uow.lock_screening(screening_id)
        if not screening:
            raise ScreeningNotFoundError()
        if not screening.is_active:
            raise ScreeningInactiveError()

        now = self._clock()
        if screening.show_time <= now:
            raise ScreeningInPastError("Cannot purchase a ticket for a past screening")

        grid = self._catalog_factory(uow.session).get_room_dimensions(screening.room_id)
        if grid is None or not grid.contains(seat_label):
            raise InvalidSeatError(seat_label)
        seat_label = grid.normalize(seat_label)

        db = uow.session
        seat_taken = (
            db.query(Ticket.id)
            .filter(
                Ticket.screening_id == screening_id,
                Ticket.seat_label == seat_label,
                Ticket.status == ACTIVE,
            )
            .first()
        )
        if seat_taken:
            raise SeatTakenError(seat_label)

        user_has_ticket = (
            db.query(Ticket.id)
            .filter(
                Ticket.screening_id == screening_id,
                Ticket.user_id == user_id,
                Ticket.status == ACTIVE,
            )
            .first()
        )
        if user_has_ticket:
            raise DuplicatePurchaseError()

        base_price = Decimal(screening.price)
        promo_id, discount = self._redeem_promo(db, promo_code, base_price, now)

        ticket = Ticket(
            screening_id=screening_id,
            user_id=user_id,
            seat_label=seat_label,
            price=base_price,
            discount_amount=discount,
            promo_code_id=promo_id,
            status=ACTIVE,
            purchase_date=now,
        )
        db.add(ticket)
        db.flush()
        logger.info(
            "Booked seat %s for screening %s (user %s, discount %s)",
            seat_label, screening_id, user_id, discount or 0,
        )
        return ticket

    def _redeem_promo(
        self,
        db: Session,
        code: Optional[str],
        base_price: Decimal,
        now: datetime,
    ) -> Tuple[Optional[UUID], Optional[Decimal]]:
        """
        Apply a promo code if it is currently redeemable.

        An unusable code never fails the purchase; the ticket is simply sold
        at full price. The usage counter is bumped with a conditional UPDATE
        in the booking transaction, so a near-exhausted code cannot be
        over-redeemed by concurrent buyers.
        """
        if not code or not code.strip():
            return None, None

        promo = db.query(PromoCode).filter(PromoCode.code == code.strip().upper()).first()
        reason = check_promo(promo, base_price, now)
        if reason is not None:
            logger.info("Ignoring promo code %r at booking: %s", code, reason.value)
            return None, None

        redeemed = (
            db.query(PromoCode)
            .filter(
                PromoCode.id == promo.id,
                or_(PromoCode.max_uses == None, PromoCode.current_uses < PromoCode.max_uses),  # noqa: E711
            )
            .update(
                {PromoCode.current_uses: PromoCode.current_uses + 1},
                synchronize_session="fetch",
            )
        )
        if not redeemed:
            logger.info("Promo code %s was exhausted concurrently, booking at full price", promo.code)
            return None, None

        discount = compute_discount(base_price, promo.discount_percent, promo.max_discount_amount)
        return promo.id, discount

    # -----------------------------------------------------------------------
    # Lifecycle transitions
    # -----------------------------------------------------------------------

    def _load_for_update(self, uow: UnitOfWork, ticket_id: UUID) -> Tuple[Ticket, Screening]:
        ticket = uow.session.query(Ticket).filter(Ticket.id == ticket_id).first()
        if not ticket:
            raise TicketNotFoundError()
        screening = uow.lock_screening(ticket.screening_id)
        # Re-read the ticket now that concurrent writers for this screening are excluded
        uow.session.refresh(ticket)
        return ticket, screening

    def cancel(
        self,
        uow: UnitOfWork,
        ticket_id: UUID,
        requested_by_user_id: Optional[UUID],
        reason: Optional[str] = None,
        as_admin: bool = False,
    ) -> Ticket:
        ticket, screening = self._load_for_update(uow, ticket_id)
        if not as_admin and ticket.user_id != requested_by_user_id:
            raise NotOwnerError()
        if ticket.status != ACTIVE:
            raise AlreadyFinalizedError(ticket.status)

        now = self._clock()
        # Cancellation closes at the start of the screening's UTC calendar day
        if screening.show_time.date() <= now.date():
            raise CancellationWindowClosedError()

        ticket.status = TicketStatus.CANCELLED.value
        ticket.cancelled_at = now
        ticket.refund_reason = reason
        uow.session.flush()
        logger.info("Cancelled ticket %s (seat %s)", ticket_id, ticket.seat_label)
        return ticket

    def check_in(self, uow: UnitOfWork, ticket_id: UUID) -> Ticket:
        ticket, _ = self._load_for_update(uow, ticket_id)
        if ticket.status != ACTIVE or ticket.checked_in_at is not None:
            raise AlreadyFinalizedError(ticket.status)

        ticket.status = TicketStatus.USED.value
        ticket.checked_in_at = self._clock()
        uow.session.flush()
        return ticket
