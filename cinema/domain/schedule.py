"""Recurring schedule definitions and their (date, time) slot enumeration."""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Iterator, List, Sequence, Tuple
from uuid import UUID


def parse_show_time(value: str) -> time:
    """Parse an ``HH:MM`` time of day. Raises ValueError when malformed."""
    try:
        parsed = datetime.strptime(value.strip(), "%H:%M")
    except (AttributeError, ValueError):
        raise ValueError(f"Invalid show time '{value}', expected HH:MM") from None
    return parsed.time()


def day_of_week(d: date) -> int:
    """0 = Sunday ... 6 = Saturday."""
    return d.isoweekday() % 7


@dataclass(frozen=True)
class ScheduleDefinition:
    movie_id: UUID
    room_id: UUID
    start_date: date
    end_date: date
    show_times: Tuple[time, ...]
    days_of_week: frozenset
    price: Decimal

    def __post_init__(self) -> None:
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        if not self.show_times:
            raise ValueError("show_times must not be empty")
        if not self.days_of_week:
            raise ValueError("days_of_week must not be empty")
        if any(d not in range(7) for d in self.days_of_week):
            raise ValueError("days_of_week values must be between 0 (Sunday) and 6 (Saturday)")

    @classmethod
    def build(
        cls,
        movie_id: UUID,
        room_id: UUID,
        start_date: date,
        end_date: date,
        show_times: Sequence[str],
        days_of_week: Sequence[int],
        price: Decimal,
    ) -> "ScheduleDefinition":
        return cls(
            movie_id=movie_id,
            room_id=room_id,
            start_date=start_date,
            end_date=end_date,
            show_times=tuple(parse_show_time(t) for t in show_times),
            days_of_week=frozenset(days_of_week),
            price=Decimal(price),
        )

    def iter_dates(self) -> Iterator[date]:
        d = self.start_date
        while d <= self.end_date:
            if day_of_week(d) in self.days_of_week:
                yield d
            d += timedelta(days=1)

    def iter_slots(self) -> Iterator[Tuple[date, time]]:
        """Every (date, time) pair in date order, times in the order given."""
        for d in self.iter_dates():
            for t in self.show_times:
                yield d, t

    def show_time_strings(self) -> List[str]:
        return [t.strftime("%H:%M") for t in self.show_times]


def combine_utc(d: date, t: time) -> datetime:
    return datetime.combine(d, t, tzinfo=timezone.utc)
