"""Two-sided best-fit packing of groups into venue block sides."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from assemblyplan.scenario.contract.models import Group
from assemblyplan.scheduling.venue import Side, VenueLayout, default_venue

RESERVED_SEATS_PER_GROUP = 1


def seats_required(group: Group) -> int:
    """Seats a group consumes: every student plus one accompanying adult."""
    return group.students + RESERVED_SEATS_PER_GROUP


@dataclass(slots=True)
class SeatBin:
    """One side of one venue block.

    ``seats`` is the fixed physical fill order; ``groups`` keeps placement order.
    """

    block: str
    side: Side
    seats: tuple[tuple[str, int], ...]
    groups: list[Group] = field(default_factory=list)
    used: int = 0

    @property
    def capacity(self) -> int:
        return len(self.seats)

    @property
    def remaining(self) -> int:
        return self.capacity - self.used

    @property
    def key(self) -> str:
        return f"{self.block}/{self.side.value}"

    def fits(self, group: Group) -> bool:
        return seats_required(group) <= self.remaining

    def place(self, group: Group) -> None:
        need = seats_required(group)
        if need > self.remaining:
            raise ValueError(f"Group '{group.id}' needs {need} seats, bin {self.key} has {self.remaining}")
        self.groups.append(group)
        self.used += need


def build_bins(layout: VenueLayout | None = None) -> list[SeatBin]:
    """Fresh, empty bins in fixed order: each block's left side, then its right side."""

    venue = layout or default_venue()
    bins: list[SeatBin] = []
    for block in venue.blocks:
        for side in (Side.LEFT, Side.RIGHT):
            bins.append(
                SeatBin(block=block.name, side=side, seats=tuple(venue.seat_order(block, side)))
            )
    return bins


@dataclass(slots=True)
class PackingResult:
    bins: list[SeatBin]
    unseated: list[Group]

    def bin_of(self, group_id: str) -> SeatBin | None:
        for seat_bin in self.bins:
            if any(g.id == group_id for g in seat_bin.groups):
                return seat_bin
        return None

    @property
    def seated_ids(self) -> list[str]:
        return [g.id for seat_bin in self.bins for g in seat_bin.groups]


def _best_fit(bins: Sequence[SeatBin], group: Group, side: Side) -> SeatBin | None:
    """Bin on ``side`` leaving the smallest non-negative slack; first bin wins ties."""
    need = seats_required(group)
    best: SeatBin | None = None
    best_slack = 0
    for seat_bin in bins:
        if seat_bin.side is not side:
            continue
        slack = seat_bin.remaining - need
        if slack < 0:
            continue
        if best is None or slack < best_slack:
            best, best_slack = seat_bin, slack
    return best


def pack_groups(
    groups: Sequence[Group],
    bins: list[SeatBin] | None = None,
    *,
    start_side: Side = Side.LEFT,
) -> PackingResult:
    """Place groups into bins, largest first, alternating the preferred side.

    The first pass is best-fit on the preferred side, then on the other side; the preferred
    side flips after every placement. A second pass retries each unseated group in fixed bin
    order (first bin with room). Groups are never split: a group either lands whole in one bin
    or is reported unseated.
    """

    bins = bins if bins is not None else build_bins()
    ordered = sorted(groups, key=seats_required, reverse=True)
    side = start_side
    unseated: list[Group] = []

    for group in ordered:
        target = _best_fit(bins, group, side) or _best_fit(bins, group, side.other)
        if target is None:
            unseated.append(group)
            continue
        target.place(group)
        side = side.other

    still_unseated: list[Group] = []
    for group in unseated:
        target = next((b for b in bins if b.fits(group)), None)
        if target is None:
            still_unseated.append(group)
        else:
            target.place(group)

    return PackingResult(bins=bins, unseated=still_unseated)


__all__ = [
    "RESERVED_SEATS_PER_GROUP",
    "SeatBin",
    "PackingResult",
    "seats_required",
    "build_bins",
    "pack_groups",
]
