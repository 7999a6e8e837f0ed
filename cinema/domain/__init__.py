from cinema.domain.errors import DomainError, ErrorCode
from cinema.domain.overlap import overlaps, screening_window
from cinema.domain.results import Result
from cinema.domain.schedule import ScheduleDefinition
from cinema.domain.seat_grid import SeatGrid

__all__ = [
    "DomainError",
    "ErrorCode",
    "Result",
    "ScheduleDefinition",
    "SeatGrid",
    "overlaps",
    "screening_window",
]
