import logging
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Callable, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from cinema.db.types import as_utc, utcnow
from cinema.db.unit_of_work import UnitOfWork
from cinema.domain.errors import (
    ConflictRetryableError,
    MovieOrRoomNotFoundError,
    OverlapConflictError,
    RoomInactiveError,
    ScreeningHasActiveTicketsError,
    ScreeningInPastError,
    ScreeningNotFoundError,
    ValidationFailedError,
)
from cinema.domain.overlap import overlaps, screening_window
from cinema.models.movie import Movie
from cinema.models.screening import Screening
from cinema.services.catalog import CatalogLookup, SqlCatalog
from cinema.services.ledger import has_active_tickets

logger = logging.getLogger(__name__)

# How far before a calendar day a screening may start and still run into it.
DAY_SCAN_LOOKBACK = timedelta(days=1)


class ScreeningInventory:
    """Per-room set of active screenings; sole gate of the no-overlap rule."""

    def __init__(
        self,
        catalog_factory: Callable[[Session], CatalogLookup] = SqlCatalog,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._catalog_factory = catalog_factory
        self._clock = clock

    # -----------------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------------

    def find_conflicts(
        self,
        uow: UnitOfWork,
        room_id: UUID,
        candidate_start: datetime,
        candidate_end: datetime,
        exclude_screening_id: Optional[UUID] = None,
        on_date: Optional[date] = None,
    ) -> Optional[Screening]:
        """Return the first active screening in the room overlapping the candidate, if any."""
        query = (
            uow.session.query(Screening, Movie.duration_minutes)
            .join(Movie, Movie.id == Screening.movie_id)
            .filter(
                Screening.room_id == room_id,
                Screening.is_active == True,  # noqa: E712
                # Anything starting at or after the candidate's end cannot overlap
                Screening.show_time < candidate_end,
            )
        )
        if exclude_screening_id:
            query = query.filter(Screening.id != exclude_screening_id)
        if on_date:
            day_start = datetime.combine(on_date, time.min, tzinfo=timezone.utc)
            query = query.filter(Screening.show_time >= day_start - DAY_SCAN_LOOKBACK)

        for screening, duration in query.order_by(Screening.show_time).all():
            start, end = screening_window(screening.show_time, duration)
            if overlaps(candidate_start, candidate_end, start, end):
                return screening
        return None

    # -----------------------------------------------------------------------
    # Mutations. Callers must hold the room lock (uow.lock_room).
    # -----------------------------------------------------------------------

    def insert(
        self,
        uow: UnitOfWork,
        screening: Screening,
        duration_minutes: int,
        on_date: Optional[date] = None,
    ) -> Screening:
        start, end = screening_window(screening.show_time, duration_minutes)
        conflict = self.find_conflicts(uow, screening.room_id, start, end, on_date=on_date)
        if conflict:
            raise OverlapConflictError(conflict.id, conflict.show_time)

        uow.session.add(screening)
        uow.session.flush()
        return screening

    def create(
        self,
        uow: UnitOfWork,
        movie_id: UUID,
        room_id: UUID,
        show_time: datetime,
        price: Decimal,
    ) -> Screening:
        if Decimal(price) <= 0:
            raise ValidationFailedError("Price must be positive")
        catalog = self._catalog_factory(uow.session)
        duration = catalog.get_movie_duration(movie_id)
        if duration is None:
            raise MovieOrRoomNotFoundError("Movie")
        if catalog.get_room_dimensions(room_id) is None:
            raise MovieOrRoomNotFoundError("Room")
        if not catalog.is_room_active(room_id):
            raise RoomInactiveError()
        show_time = as_utc(show_time)
        if show_time <= self._clock():
            raise ScreeningInPastError("Show time must be in the future")

        uow.lock_room(room_id)
        screening = Screening(
            movie_id=movie_id,
            room_id=room_id,
            show_time=show_time,
            price=price,
            is_active=True,
        )
        self.insert(uow, screening, duration)
        logger.info("Scheduled screening %s in room %s at %s", screening.id, room_id, show_time)
        return screening

    def update(
        self,
        uow: UnitOfWork,
        screening_id: UUID,
        movie_id: Optional[UUID] = None,
        room_id: Optional[UUID] = None,
        show_time: Optional[datetime] = None,
        price: Optional[Decimal] = None,
    ) -> Screening:
        """Edit a screening that has sold nothing yet, re-checking the room's timeline.

        Locks are taken room(s) first, in id order, then the screening row:
        the same order schedule expansion and removal use.
        """
        current = uow.session.query(Screening.room_id).filter(Screening.id == screening_id).first()
        if not current:
            raise ScreeningNotFoundError()
        locked_rooms = sorted({current.room_id, room_id or current.room_id})
        for locked_room in locked_rooms:
            uow.lock_room(locked_room)

        screening = uow.lock_screening(screening_id)
        if not screening:
            raise ScreeningNotFoundError()
        if screening.room_id not in locked_rooms:
            # Moved to another room between the read and the lock
            raise ConflictRetryableError()
        if has_active_tickets(uow.session, screening_id):
            raise ScreeningHasActiveTicketsError()

        if price is not None and Decimal(price) <= 0:
            raise ValidationFailedError("Price must be positive")

        new_movie = movie_id or screening.movie_id
        new_room = room_id or screening.room_id
        new_time = as_utc(show_time) if show_time else screening.show_time

        catalog = self._catalog_factory(uow.session)
        duration = catalog.get_movie_duration(new_movie)
        if duration is None:
            raise MovieOrRoomNotFoundError("Movie")
        if catalog.get_room_dimensions(new_room) is None:
            raise MovieOrRoomNotFoundError("Room")

        timeline_changed = (new_movie, new_room, new_time) != (
            screening.movie_id, screening.room_id, screening.show_time
        )
        if timeline_changed:
            if not catalog.is_room_active(new_room):
                raise RoomInactiveError()
            if new_time <= self._clock():
                raise ScreeningInPastError("Show time must be in the future")
            start, end = screening_window(new_time, duration)
            conflict = self.find_conflicts(
                uow, new_room, start, end, exclude_screening_id=screening_id
            )
            if conflict:
                raise OverlapConflictError(conflict.id, conflict.show_time)

        screening.movie_id = new_movie
        screening.room_id = new_room
        screening.show_time = new_time
        if price is not None:
            screening.price = price
        uow.session.flush()
        return screening

    def deactivate(self, uow: UnitOfWork, screening_id: UUID) -> Screening:
        screening = uow.lock_screening(screening_id)
        if not screening:
            raise ScreeningNotFoundError()
        if has_active_tickets(uow.session, screening_id):
            raise ScreeningHasActiveTicketsError()

        screening.is_active = False
        uow.session.flush()
        logger.info("Deactivated screening %s", screening_id)
        return screening
