"""Explicit transaction object handed to every inventory/ledger mutation.

A ``UnitOfWork`` owns one SQLAlchemy session for the lifetime of a single
core operation. Nothing is committed implicitly: the caller commits once
every invariant check and write has succeeded, and leaving the ``with``
block without committing rolls everything back.
"""

from typing import Callable
from uuid import UUID

from sqlalchemy.orm import Session

from cinema.models.screening import Screening
from cinema.models.theater import Room


class UnitOfWork:
    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory
        self.session: Session | None = None
        self._committed = False

    def __enter__(self) -> "UnitOfWork":
        self.session = self._session_factory()
        self._committed = False
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if exc_type is not None or not self._committed:
                self.session.rollback()
        finally:
            self.session.close()

    def commit(self) -> None:
        self.session.commit()
        self._committed = True

    def rollback(self) -> None:
        self.session.rollback()

    # -----------------------------------------------------------------------
    # Key-scoped locks. Each one serialises writers touching the same row
    # (room for screening inserts, screening for ticket writes) until the
    # transaction ends. When both are needed the room is always locked first.
    # Rows come back re-read so checks after the lock see committed state.
    # -----------------------------------------------------------------------

    def lock_room(self, room_id: UUID) -> Room | None:
        return (
            self.session.query(Room)
            .filter(Room.id == room_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def lock_screening(self, screening_id: UUID) -> Screening | None:
        return (
            self.session.query(Screening)
            .filter(Screening.id == screening_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
