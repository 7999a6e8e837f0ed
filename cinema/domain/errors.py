"""Domain error codes for the box office core."""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    INVALID_SEAT = "INVALID_SEAT"
    SEAT_TAKEN = "SEAT_TAKEN"
    DUPLICATE_PURCHASE = "DUPLICATE_PURCHASE"
    SCREENING_NOT_FOUND = "SCREENING_NOT_FOUND"
    SCREENING_INACTIVE = "SCREENING_INACTIVE"
    SCREENING_IN_PAST = "SCREENING_IN_PAST"
    SCREENING_HAS_ACTIVE_TICKETS = "SCREENING_HAS_ACTIVE_TICKETS"
    OVERLAP_CONFLICT = "OVERLAP_CONFLICT"
    TICKET_NOT_FOUND = "TICKET_NOT_FOUND"
    NOT_OWNER = "NOT_OWNER"
    ALREADY_FINALIZED = "ALREADY_FINALIZED"
    CANCELLATION_WINDOW_CLOSED = "CANCELLATION_WINDOW_CLOSED"
    PROMO_INVALID = "PROMO_INVALID"
    PROMO_EXPIRED = "PROMO_EXPIRED"
    PROMO_EXHAUSTED = "PROMO_EXHAUSTED"
    PROMO_MINIMUM_NOT_MET = "PROMO_MINIMUM_NOT_MET"
    ROOM_INACTIVE = "ROOM_INACTIVE"
    MOVIE_OR_ROOM_NOT_FOUND = "MOVIE_OR_ROOM_NOT_FOUND"
    SCHEDULE_NOT_FOUND = "SCHEDULE_NOT_FOUND"
    CONFLICT_RETRYABLE = "CONFLICT_RETRYABLE"
    VALIDATION_FAILED = "VALIDATION_FAILED"


@dataclass(frozen=True)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class InvalidSeatError(DomainError):
    def __init__(self, seat_label: str) -> None:
        super().__init__(
            code=ErrorCode.INVALID_SEAT,
            message=f"Seat '{seat_label}' is malformed or outside the room",
        )


class SeatTakenError(DomainError):
    def __init__(self, seat_label: str) -> None:
        super().__init__(
            code=ErrorCode.SEAT_TAKEN,
            message=f"Seat {seat_label} is already taken",
        )


class DuplicatePurchaseError(DomainError):
    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.DUPLICATE_PURCHASE,
            message="You already have a ticket for this screening",
        )


class ScreeningNotFoundError(DomainError):
    def __init__(self) -> None:
        super().__init__(code=ErrorCode.SCREENING_NOT_FOUND, message="Screening not found")


class ScreeningInactiveError(DomainError):
    def __init__(self) -> None:
        super().__init__(code=ErrorCode.SCREENING_INACTIVE, message="Screening is no longer active")


class ScreeningInPastError(DomainError):
    def __init__(self, message: str = "Screening has already started") -> None:
        super().__init__(code=ErrorCode.SCREENING_IN_PAST, message=message)


class ScreeningHasActiveTicketsError(DomainError):
    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.SCREENING_HAS_ACTIVE_TICKETS,
            message="Screening has active tickets. Cancel them first",
        )


class OverlapConflictError(DomainError):
    """Raised when a candidate interval collides with an active screening."""

    def __init__(self, conflicting_id=None, conflicting_start=None) -> None:
        detail = "Room already has an overlapping screening"
        if conflicting_start is not None:
            detail = f"{detail} at {conflicting_start.isoformat()}"
        super().__init__(code=ErrorCode.OVERLAP_CONFLICT, message=detail)
        object.__setattr__(self, "conflicting_id", conflicting_id)


class TicketNotFoundError(DomainError):
    def __init__(self) -> None:
        super().__init__(code=ErrorCode.TICKET_NOT_FOUND, message="Ticket not found")


class NotOwnerError(DomainError):
    def __init__(self) -> None:
        super().__init__(code=ErrorCode.NOT_OWNER, message="Ticket belongs to another user")


class AlreadyFinalizedError(DomainError):
    def __init__(self, status: str) -> None:
        super().__init__(
            code=ErrorCode.ALREADY_FINALIZED,
            message=f"Ticket is not active (current status: '{status}')",
        )


class CancellationWindowClosedError(DomainError):
    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.CANCELLATION_WINDOW_CLOSED,
            message="Tickets can only be cancelled until the day before the screening",
        )


class RoomInactiveError(DomainError):
    def __init__(self) -> None:
        super().__init__(code=ErrorCode.ROOM_INACTIVE, message="Room is not active")


class MovieOrRoomNotFoundError(DomainError):
    def __init__(self, what: str = "Movie or room") -> None:
        super().__init__(code=ErrorCode.MOVIE_OR_ROOM_NOT_FOUND, message=f"{what} not found")


class ScheduleNotFoundError(DomainError):
    def __init__(self) -> None:
        super().__init__(code=ErrorCode.SCHEDULE_NOT_FOUND, message="Schedule not found")


class ConflictRetryableError(DomainError):
    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.CONFLICT_RETRYABLE,
            message="The request collided with a concurrent change, please retry",
        )


class ValidationFailedError(DomainError):
    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.VALIDATION_FAILED, message=message)
