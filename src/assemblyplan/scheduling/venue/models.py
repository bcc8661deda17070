"""Auditorium layout metadata (rows, blocks, and per-side seat numbers)."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

__all__ = ["Side", "RowSeats", "VenueBlock", "VenueLayout", "default_venue"]


class Side(str, Enum):
    LEFT = "left"
    RIGHT = "right"

    @property
    def other(self) -> Side:
        return Side.RIGHT if self is Side.LEFT else Side.LEFT


class RowSeats(BaseModel):
    """Seat numbers available on each side of one row."""

    model_config = ConfigDict(frozen=True)

    left: tuple[int, ...] = ()
    right: tuple[int, ...] = ()

    @field_validator("left", "right")
    @classmethod
    def _positive_unique(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        if any(seat < 1 for seat in value):
            raise ValueError("Seat numbers must be >= 1")
        if len(set(value)) != len(value):
            raise ValueError("Seat numbers must be unique within a row side")
        return value

    @model_validator(mode="after")
    def _sides_disjoint(self) -> RowSeats:
        if set(self.left) & set(self.right):
            raise ValueError("A seat number cannot belong to both sides of a row")
        return self

    def side(self, side: Side) -> tuple[int, ...]:
        return self.left if Side(side) is Side.LEFT else self.right


class VenueBlock(BaseModel):
    """Contiguous group of rows; a group is never split across blocks."""

    model_config = ConfigDict(frozen=True)

    name: str
    rows: tuple[str, ...]

    @field_validator("rows")
    @classmethod
    def _rows_present(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not value:
            raise ValueError("VenueBlock.rows must not be empty")
        return value


class VenueLayout(BaseModel):
    """Complete seating layout of the venue.

    Attributes
    ----------
    blocks:
        Ordered blocks; each block side becomes one packing bin.
    seats:
        Row label -> :class:`RowSeats`. Every row referenced by a block must be present.
    """

    model_config = ConfigDict(frozen=True)

    blocks: tuple[VenueBlock, ...]
    seats: dict[str, RowSeats]

    @model_validator(mode="after")
    def _rows_known(self) -> VenueLayout:
        seen: set[str] = set()
        for block in self.blocks:
            for row in block.rows:
                if row not in self.seats:
                    raise ValueError(f"Block '{block.name}' references unknown row '{row}'")
                if row in seen:
                    raise ValueError(f"Row '{row}' belongs to more than one block")
                seen.add(row)
        return self

    @property
    def rows(self) -> list[str]:
        return [row for block in self.blocks for row in block.rows]

    def seat_order(self, block: VenueBlock, side: Side) -> list[tuple[str, int]]:
        """Physical fill order of one block side: rows front to back, seats ascending."""
        order: list[tuple[str, int]] = []
        for row in block.rows:
            for seat in sorted(self.seats[row].side(side)):
                order.append((row, seat))
        return order

    def locate(self, row: str, seat: int) -> tuple[str, Side] | None:
        """Block name and side holding ``row``/``seat``, or ``None`` when the seat does not exist."""
        row_seats = self.seats.get(row)
        if row_seats is None:
            return None
        for block in self.blocks:
            if row in block.rows:
                for side in Side:
                    if seat in row_seats.side(side):
                        return block.name, side
        return None

    def total_seats(self) -> int:
        return sum(len(r.left) + len(r.right) for r in self.seats.values())


def _span(first: int, last: int) -> tuple[int, ...]:
    return tuple(range(first, last + 1))


def default_venue() -> VenueLayout:
    """Auditorium used by the school: rows A-S (no J/K), three blocks, two sides."""

    full = RowSeats(left=_span(1, 15), right=_span(16, 30))
    seats: dict[str, RowSeats] = {
        row: full
        for row in ("A", "B", "C", "E", "F", "G", "H", "I", "L", "M", "N", "O", "P", "Q", "R")
    }
    # row D loses the central seats 13-18 to the aisle; row S is the back row
    seats["D"] = RowSeats(left=_span(1, 12), right=_span(19, 30))
    seats["S"] = RowSeats(
        left=(2, 3, 4, 5, 6, 7, 8, 9, 10, 13, 14, 15),
        right=(16, 17, 18, 21, 22, 23, 24, 25, 26, 27, 28, 29),
    )
    return VenueLayout(
        blocks=(
            VenueBlock(name="front", rows=("A", "B", "C")),
            VenueBlock(name="middle", rows=("D", "E", "F", "G", "H", "I", "L")),
            VenueBlock(name="back", rows=("M", "N", "O", "P", "Q", "R", "S")),
        ),
        seats=seats,
    )
