"""Shift occupancy and eligibility validation."""

from .capacity import (
    MIN_STAFF_PER_GROUP,
    GroupOccupancy,
    ShiftOccupancy,
    ShiftValidation,
    Violation,
    ViolationKind,
    effective_staff_count,
    shift_occupancy,
    validate_partition,
    validate_shift,
)

__all__ = [
    "MIN_STAFF_PER_GROUP",
    "ViolationKind",
    "Violation",
    "GroupOccupancy",
    "ShiftOccupancy",
    "ShiftValidation",
    "effective_staff_count",
    "shift_occupancy",
    "validate_shift",
    "validate_partition",
]
