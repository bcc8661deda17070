"""Venue seating: bin packing of groups and seat-level maps."""

from .packer import (
    RESERVED_SEATS_PER_GROUP,
    PackingResult,
    SeatBin,
    build_bins,
    pack_groups,
    seats_required,
)
from .seatmap import COLORS, SeatAssignment, SeatMap, assign_seats, color_palette, seat_packing

__all__ = [
    "RESERVED_SEATS_PER_GROUP",
    "SeatBin",
    "PackingResult",
    "seats_required",
    "build_bins",
    "pack_groups",
    "COLORS",
    "SeatAssignment",
    "SeatMap",
    "color_palette",
    "seat_packing",
    "assign_seats",
]
