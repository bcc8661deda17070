"""Seat-level assignment of packed groups and manual seat overrides."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field, replace

import pandas as pd

from assemblyplan.core.errors import AssemblyValueError
from assemblyplan.scenario.contract.models import Group
from assemblyplan.scheduling.venue import VenueLayout, default_venue
from assemblyplan.seating.packer import PackingResult, build_bins, pack_groups, seats_required

COLORS: tuple[str, ...] = (
    "#ef4444",
    "#f97316",
    "#f59e0b",
    "#eab308",
    "#84cc16",
    "#22c55e",
    "#14b8a6",
    "#06b6d4",
    "#0ea5e9",
    "#3b82f6",
    "#6366f1",
    "#8b5cf6",
    "#a855f7",
    "#d946ef",
    "#ec4899",
    "#f43f5e",
    "#78716c",
    "#71717a",
    "#64748b",
    "#0d9488",
    "#059669",
    "#16a34a",
    "#65a30d",
    "#ca8a04",
    "#d97706",
)

SeatKey = tuple[str, int]


@dataclass(frozen=True, slots=True)
class SeatAssignment:
    row: str
    seat: int
    group_id: str
    color: str
    block: str = ""
    side: str = ""

    @property
    def key(self) -> SeatKey:
        return (self.row, self.seat)


def color_palette(groups: Sequence[Group]) -> dict[str, str]:
    """Group id -> color, cycling the palette in input order."""
    return {group.id: COLORS[index % len(COLORS)] for index, group in enumerate(groups)}


@dataclass(frozen=True)
class SeatMap:
    """Seats taken by each group for one shift.

    ``assignments`` keeps fill order: bins in layout order, groups in placement order within
    a bin, seats in the bin's physical order. The first seat of a group's run is its anchor.
    """

    assignments: tuple[SeatAssignment, ...]
    unseated: tuple[str, ...] = ()
    colors: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        taken: set[SeatKey] = set()
        for item in self.assignments:
            if item.key in taken:
                raise AssemblyValueError(f"Seat {item.row}{item.seat} assigned twice")
            taken.add(item.key)

    def at(self, row: str, seat: int) -> SeatAssignment | None:
        for item in self.assignments:
            if item.row == row and item.seat == seat:
                return item
        return None

    def seats_of(self, group_id: str) -> list[SeatKey]:
        return [item.key for item in self.assignments if item.group_id == group_id]

    def anchor_of(self, group_id: str) -> SeatKey | None:
        seats = self.seats_of(group_id)
        return seats[0] if seats else None

    def seated_ids(self) -> list[str]:
        seen: dict[str, None] = {}
        for item in self.assignments:
            seen.setdefault(item.group_id, None)
        return list(seen)

    def seat_counts(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for item in self.assignments:
            counts[item.group_id] = counts.get(item.group_id, 0) + 1
        return counts

    def move(
        self,
        source: SeatKey,
        target: SeatKey,
        layout: VenueLayout | None = None,
    ) -> SeatMap:
        """Move one seat assignment, returning a new map.

        Moving onto an occupied seat swaps the two seats' groups. Only the moved seat changes
        hands; the rest of each group's run stays where it was, so a multi-seat group does not
        relocate as a unit.

        Raises
        ------
        AssemblyValueError
            If ``source`` is empty or ``target`` does not exist in ``layout``.
        """

        venue = layout or default_venue()
        moving = self.at(*source)
        if moving is None:
            raise AssemblyValueError(f"Seat {source[0]}{source[1]} is not assigned")
        location = venue.locate(*target)
        if location is None:
            raise AssemblyValueError(f"Seat {target[0]}{target[1]} does not exist")
        if source == target:
            return self

        occupant = self.at(*target)
        updated: list[SeatAssignment] = []
        for item in self.assignments:
            if item is moving:
                if occupant is None:
                    block, side = location
                    updated.append(
                        replace(moving, row=target[0], seat=target[1], block=block, side=side.value)
                    )
                else:
                    updated.append(replace(moving, group_id=occupant.group_id, color=occupant.color))
            elif occupant is not None and item is occupant:
                updated.append(replace(occupant, group_id=moving.group_id, color=moving.color))
            else:
                updated.append(item)
        return SeatMap(assignments=tuple(updated), unseated=self.unseated, colors=dict(self.colors))

    def to_dataframe(self) -> pd.DataFrame:
        columns = ["row", "seat", "group_id", "color", "block", "side"]
        records = [
            {
                "row": item.row,
                "seat": item.seat,
                "group_id": item.group_id,
                "color": item.color,
                "block": item.block,
                "side": item.side,
            }
            for item in self.assignments
        ]
        return pd.DataFrame.from_records(records, columns=columns)


def seat_packing(packing: PackingResult, colors: dict[str, str]) -> SeatMap:
    """Expand bin-level placements into concrete seats."""

    assignments: list[SeatAssignment] = []
    for seat_bin in packing.bins:
        cursor = 0
        for group in seat_bin.groups:
            need = seats_required(group)
            for row, seat in seat_bin.seats[cursor : cursor + need]:
                assignments.append(
                    SeatAssignment(
                        row=row,
                        seat=seat,
                        group_id=group.id,
                        color=colors.get(group.id, COLORS[0]),
                        block=seat_bin.block,
                        side=seat_bin.side.value,
                    )
                )
            cursor += need
    return SeatMap(
        assignments=tuple(assignments),
        unseated=tuple(group.id for group in packing.unseated),
        colors=colors,
    )


def assign_seats(groups: Sequence[Group], layout: VenueLayout | None = None) -> SeatMap:
    """Pack one shift's groups into the venue and draw their seats."""

    packing = pack_groups(groups, build_bins(layout))
    return seat_packing(packing, color_palette(groups))


__all__ = [
    "COLORS",
    "SeatAssignment",
    "SeatMap",
    "color_palette",
    "seat_packing",
    "assign_seats",
]
