import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Callable, List, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from cinema.db.types import utcnow
from cinema.db.unit_of_work import UnitOfWork
from cinema.domain.errors import (
    MovieOrRoomNotFoundError,
    OverlapConflictError,
    RoomInactiveError,
    ScheduleNotFoundError,
)
from cinema.domain.schedule import ScheduleDefinition, combine_utc
from cinema.models.screening import Screening, ScreeningSchedule
from cinema.services.catalog import CatalogLookup, SqlCatalog
from cinema.services.inventory import ScreeningInventory
from cinema.services.ledger import has_active_tickets

logger = logging.getLogger(__name__)


@dataclass
class ExpansionReport:
    schedule_id: UUID
    created_count: int = 0
    conflicts: List[Tuple[date, time]] = field(default_factory=list)


@dataclass
class ScheduleRemovalReport:
    schedule_id: UUID
    deactivated: int = 0
    skipped: int = 0


class ScheduleExpander:
    """Turns a recurring ScheduleDefinition into concrete screenings."""

    def __init__(
        self,
        inventory: ScreeningInventory,
        catalog_factory: Callable[[Session], CatalogLookup] = SqlCatalog,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._inventory = inventory
        self._catalog_factory = catalog_factory
        self._clock = clock

    def create_schedule(self, uow: UnitOfWork, definition: ScheduleDefinition) -> ExpansionReport:
        """Persist the definition as a schedule record and expand it."""
        catalog = self._catalog_factory(uow.session)
        if catalog.get_movie_duration(definition.movie_id) is None:
            raise MovieOrRoomNotFoundError("Movie")
        if catalog.get_room_dimensions(definition.room_id) is None:
            raise MovieOrRoomNotFoundError("Room")
        if not catalog.is_room_active(definition.room_id):
            raise RoomInactiveError()

        schedule = ScreeningSchedule(
            movie_id=definition.movie_id,
            room_id=definition.room_id,
            start_date=definition.start_date,
            end_date=definition.end_date,
            show_times=definition.show_time_strings(),
            days_of_week=sorted(definition.days_of_week),
            price=definition.price,
            is_active=True,
        )
        uow.session.add(schedule)
        uow.session.flush()
        return self.expand(uow, definition, schedule.id)

    def expand(
        self,
        uow: UnitOfWork,
        definition: ScheduleDefinition,
        schedule_id: UUID,
    ) -> ExpansionReport:
        """
        Visit every (date, time) slot once, in order.

        Past slots are skipped silently, colliding slots are recorded as
        conflicts and skipped; nothing is retried or reordered, and screenings
        created before a later conflict are kept.
        """
        duration = self._catalog_factory(uow.session).get_movie_duration(definition.movie_id)
        if duration is None:
            raise MovieOrRoomNotFoundError("Movie")

        uow.lock_room(definition.room_id)
        now = self._clock()
        report = ExpansionReport(schedule_id=schedule_id)

        for slot_date, slot_time in definition.iter_slots():
            start = combine_utc(slot_date, slot_time)
            if start <= now:
                continue

            screening = Screening(
                movie_id=definition.movie_id,
                room_id=definition.room_id,
                show_time=start,
                price=definition.price,
                is_active=True,
                schedule_id=schedule_id,
            )
            try:
                self._inventory.insert(uow, screening, duration, on_date=slot_date)
            except OverlapConflictError:
                report.conflicts.append((slot_date, slot_time))
                continue
            report.created_count += 1

        logger.info(
            "Expanded schedule %s: %d created, %d conflict(s)",
            schedule_id, report.created_count, len(report.conflicts),
        )
        return report

    def delete_schedule(self, uow: UnitOfWork, schedule_id: UUID) -> ScheduleRemovalReport:
        """Deactivate a schedule's future screenings; ticketed ones stay on sale."""
        schedule = (
            uow.session.query(ScreeningSchedule)
            .filter(ScreeningSchedule.id == schedule_id, ScreeningSchedule.is_active == True)  # noqa: E712
            .first()
        )
        if not schedule:
            raise ScheduleNotFoundError()

        uow.lock_room(schedule.room_id)
        now = self._clock()
        report = ScheduleRemovalReport(schedule_id=schedule_id)

        future = (
            uow.session.query(Screening)
            .filter(
                Screening.schedule_id == schedule_id,
                Screening.is_active == True,  # noqa: E712
                Screening.show_time > now,
            )
            .order_by(Screening.show_time)
            .all()
        )
        for candidate in future:
            # Bookings serialise on the screening row; hold it across check and write
            screening = uow.lock_screening(candidate.id)
            if not screening.is_active:
                continue
            if has_active_tickets(uow.session, screening.id):
                report.skipped += 1
                continue
            screening.is_active = False
            report.deactivated += 1

        schedule.is_active = False
        uow.session.flush()
        logger.info(
            "Removed schedule %s: %d screening(s) deactivated, %d kept for ticket holders",
            schedule_id, report.deactivated, report.skipped,
        )
        return report
