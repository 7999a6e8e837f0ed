"""
Box office facade: the operations the request layer calls.

Each operation runs in its own UnitOfWork and returns a ``Result``. Domain
errors never escape as exceptions; database aborts (a concurrent writer won
a unique index or a lock) are rolled back and reported as
``CONFLICT_RETRYABLE`` so the caller may retry once. Nothing is retried here.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable, Optional, TypeVar
from uuid import UUID

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from cinema.db.types import utcnow
from cinema.db.unit_of_work import UnitOfWork
from cinema.domain.errors import ConflictRetryableError, DomainError
from cinema.domain.results import Result
from cinema.domain.schedule import ScheduleDefinition
from cinema.schemas.common import BulkOperationResult
from cinema.schemas.screening import Screening as ScreeningSchema
from cinema.schemas.ticket import Ticket as TicketSchema
from cinema.services.catalog import CatalogLookup, SqlCatalog
from cinema.services.inventory import ScreeningInventory
from cinema.services.ledger import TicketLedger
from cinema.services.scheduler import ScheduleExpander

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _identity(value):
    return value


class BoxOffice:
    def __init__(
        self,
        session_factory: Callable[[], Session],
        clock: Callable[[], datetime] = utcnow,
        catalog_factory: Callable[[Session], CatalogLookup] = SqlCatalog,
    ) -> None:
        self._session_factory = session_factory
        self.inventory = ScreeningInventory(catalog_factory, clock)
        self.ledger = TicketLedger(catalog_factory, clock)
        self.expander = ScheduleExpander(self.inventory, catalog_factory, clock)

    def _run(
        self,
        operation: str,
        work: Callable[[UnitOfWork], T],
        present: Callable[[T], object] = _identity,
    ) -> Result:
        try:
            with UnitOfWork(self._session_factory) as uow:
                value = work(uow)
                uow.commit()
                # Still inside the session: expired attributes reload here
                return Result.success(present(value))
        except DomainError as exc:
            logger.info("%s rejected: %s", operation, exc)
            return Result.failure(exc)
        except (IntegrityError, OperationalError) as exc:
            logger.warning("%s aborted by a concurrent change: %s", operation, exc.orig)
            return Result.failure(ConflictRetryableError())

    # -----------------------------------------------------------------------
    # Tickets
    # -----------------------------------------------------------------------

    def book_seat(
        self,
        screening_id: UUID,
        seat_label: str,
        user_id: UUID,
        promo_code: Optional[str] = None,
    ) -> Result:
        return self._run(
            "book_seat",
            lambda uow: self.ledger.book(uow, screening_id, seat_label, user_id, promo_code),
            TicketSchema.model_validate,
        )

    def cancel_ticket(
        self,
        ticket_id: UUID,
        user_id: Optional[UUID],
        reason: Optional[str] = None,
        as_admin: bool = False,
    ) -> Result:
        return self._run(
            "cancel_ticket",
            lambda uow: self.ledger.cancel(uow, ticket_id, user_id, reason, as_admin=as_admin),
            TicketSchema.model_validate,
        )

    def check_in(self, ticket_id: UUID) -> Result:
        return self._run(
            "check_in",
            lambda uow: self.ledger.check_in(uow, ticket_id),
            TicketSchema.model_validate,
        )

    def bulk_cancel(self, ticket_ids: Iterable[UUID], reason: Optional[str] = None) -> BulkOperationResult:
        return self._bulk(
            ticket_ids,
            lambda ticket_id: self.cancel_ticket(ticket_id, None, reason, as_admin=True),
        )

    def bulk_mark_used(self, ticket_ids: Iterable[UUID]) -> BulkOperationResult:
        return self._bulk(ticket_ids, self.check_in)

    def _bulk(self, ticket_ids: Iterable[UUID], apply: Callable[[UUID], Result]) -> BulkOperationResult:
        succeeded = 0
        errors = {}
        for ticket_id in ticket_ids:
            result = apply(ticket_id)
            if result.ok:
                succeeded += 1
            else:
                errors[str(ticket_id)] = result.code.value
        return BulkOperationResult(succeeded=succeeded, skipped=len(errors), errors=errors)

    # -----------------------------------------------------------------------
    # Screenings
    # -----------------------------------------------------------------------

    def create_screening(
        self,
        movie_id: UUID,
        room_id: UUID,
        show_time: datetime,
        price: Decimal,
    ) -> Result:
        return self._run(
            "create_screening",
            lambda uow: self.inventory.create(uow, movie_id, room_id, show_time, price),
            ScreeningSchema.model_validate,
        )

    def update_screening(self, screening_id: UUID, **changes) -> Result:
        return self._run(
            "update_screening",
            lambda uow: self.inventory.update(uow, screening_id, **changes),
            ScreeningSchema.model_validate,
        )

    def deactivate_screening(self, screening_id: UUID) -> Result:
        return self._run(
            "deactivate_screening",
            lambda uow: self.inventory.deactivate(uow, screening_id),
            ScreeningSchema.model_validate,
        )

    # -----------------------------------------------------------------------
    # Schedules
    # -----------------------------------------------------------------------

    def expand_schedule(self, definition: ScheduleDefinition) -> Result:
        """Result value is an ExpansionReport (created count, conflicts, schedule id)."""
        return self._run(
            "expand_schedule",
            lambda uow: self.expander.create_schedule(uow, definition),
        )

    def delete_schedule(self, schedule_id: UUID) -> Result:
        return self._run(
            "delete_schedule",
            lambda uow: self.expander.delete_schedule(uow, schedule_id),
        )

