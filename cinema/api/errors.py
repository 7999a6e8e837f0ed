from fastapi import HTTPException, status

from cinema.domain.errors import ErrorCode
from cinema.domain.results import Result

_STATUS_BY_CODE = {
    ErrorCode.SCREENING_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.TICKET_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.MOVIE_OR_ROOM_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.SCHEDULE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.SEAT_TAKEN: status.HTTP_409_CONFLICT,
    ErrorCode.DUPLICATE_PURCHASE: status.HTTP_409_CONFLICT,
    ErrorCode.OVERLAP_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.SCREENING_HAS_ACTIVE_TICKETS: status.HTTP_409_CONFLICT,
    ErrorCode.CONFLICT_RETRYABLE: status.HTTP_409_CONFLICT,
    ErrorCode.NOT_OWNER: status.HTTP_403_FORBIDDEN,
    ErrorCode.VALIDATION_FAILED: status.HTTP_422_UNPROCESSABLE_ENTITY,
}


def status_for(code: ErrorCode) -> int:
    return _STATUS_BY_CODE.get(code, status.HTTP_400_BAD_REQUEST)


def unwrap_or_raise(result: Result):
    """Return the result's value, or raise the HTTP error matching its code."""
    if result.ok:
        return result.value
    raise HTTPException(
        status_code=status_for(result.code),
        detail={"error": result.code.value, "message": result.error.message},
    )
