"""Addressable seats of a room: rows A..Z, seats 1..N per row.

A seat label is one row letter followed by a seat number, e.g. ``"A1"`` or
``"b12"``. The letter is case-insensitive (A is row 0); the stored form is
upper-case.
"""

import string
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

MAX_ROWS = len(string.ascii_uppercase)


def parse_seat_label(seat_label: str) -> Optional[Tuple[int, int]]:
    """Return ``(row_index, seat_number)`` or None when the label is malformed."""
    if not seat_label or len(seat_label) < 2:
        return None

    row_char = seat_label[0]
    if row_char not in string.ascii_letters:
        return None

    number = seat_label[1:]
    if not number.isdigit() or not number.isascii():
        return None

    return ord(row_char.upper()) - ord("A"), int(number)


def validate(seat_label: str, rows: int, seats_per_row: int) -> bool:
    """True iff the label decodes to a seat inside a ``rows`` x ``seats_per_row`` grid."""
    parsed = parse_seat_label(seat_label)
    if parsed is None:
        return False
    row_index, seat_number = parsed
    return 0 <= row_index < rows and 1 <= seat_number <= seats_per_row


def format_seat_label(row_index: int, seat_number: int) -> str:
    return f"{string.ascii_uppercase[row_index]}{seat_number}"


@dataclass(frozen=True)
class SeatGrid:
    rows: int
    seats_per_row: int

    def __post_init__(self) -> None:
        if not 1 <= self.rows <= MAX_ROWS:
            raise ValueError(f"rows must be between 1 and {MAX_ROWS}")
        if self.seats_per_row < 1:
            raise ValueError("seats_per_row must be at least 1")

    @property
    def capacity(self) -> int:
        return self.rows * self.seats_per_row

    def contains(self, seat_label: str) -> bool:
        return validate(seat_label, self.rows, self.seats_per_row)

    def normalize(self, seat_label: str) -> str:
        """Canonical label ("a05" -> "A5"). Caller must have validated it."""
        row_index, seat_number = parse_seat_label(seat_label)
        return format_seat_label(row_index, seat_number)

    def labels(self) -> Iterator[str]:
        for row_index in range(self.rows):
            for seat_number in range(1, self.seats_per_row + 1):
                yield format_seat_label(row_index, seat_number)
