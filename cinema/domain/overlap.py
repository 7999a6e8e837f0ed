from datetime import datetime, timedelta
from typing import Tuple


def overlaps(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    """
    Half-open interval test: [start_a, end_a) vs [start_b, end_b).

    Back-to-back showings (end_a == start_b) do not overlap, so a room can
    start its next screening the minute the previous one ends.
    """
    return start_a < end_b and start_b < end_a


def screening_window(show_time: datetime, duration_minutes: int) -> Tuple[datetime, datetime]:
    return show_time, show_time + timedelta(minutes=duration_minutes)
