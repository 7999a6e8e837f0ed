"""Catalog lookup consumed by the inventory, ledger and expander.

The core only needs three facts from the catalog: how long a movie runs,
how big a room is, and whether the room is open for scheduling.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from cinema.domain.seat_grid import SeatGrid
from cinema.models.movie import Movie
from cinema.models.theater import Room, Theater


class CatalogLookup(ABC):
    """Interface for movie/room facts."""

    @abstractmethod
    def get_movie_duration(self, movie_id: UUID) -> Optional[int]:
        """Return the runtime in minutes, or None if the movie does not exist."""
        ...

    @abstractmethod
    def get_room_dimensions(self, room_id: UUID) -> Optional[SeatGrid]:
        """Return the room's seat grid, or None if the room does not exist."""
        ...

    @abstractmethod
    def is_room_active(self, room_id: UUID) -> bool:
        """A room is active when both it and its theater are active."""
        ...


class SqlCatalog(CatalogLookup):
    """Catalog reads through the caller's session so they share its transaction."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def get_movie_duration(self, movie_id: UUID) -> Optional[int]:
        movie = self._db.query(Movie).filter(Movie.id == movie_id).first()
        return movie.duration_minutes if movie else None

    def get_room_dimensions(self, room_id: UUID) -> Optional[SeatGrid]:
        room = self._db.query(Room).filter(Room.id == room_id).first()
        if not room:
            return None
        return SeatGrid(rows=room.rows, seats_per_row=room.seats_per_row)

    def is_room_active(self, room_id: UUID) -> bool:
        row = (
            self._db.query(Room.id)
            .join(Theater, Theater.id == Room.theater_id)
            .filter(
                Room.id == room_id,
                Room.is_active == True,  # noqa: E712
                Theater.is_active == True,  # noqa: E712
            )
            .first()
        )
        return row is not None
