"""Scheduling utilities (assembly shift timeline, venue layout)."""

from .timeline import ShiftCalendar, ShiftDefinition, default_shifts
from .venue import Side, VenueLayout, default_venue

__all__ = [
    "ShiftDefinition",
    "ShiftCalendar",
    "default_shifts",
    "Side",
    "VenueLayout",
    "default_venue",
]
