"""Staff roster lookups."""

from .lookup import (
    NOT_FOUND_LABEL,
    ShiftStaff,
    StaffFound,
    StaffLookup,
    StaffLookupResult,
    StaffNotFound,
    staff_names,
)

__all__ = [
    "NOT_FOUND_LABEL",
    "StaffFound",
    "StaffNotFound",
    "StaffLookupResult",
    "ShiftStaff",
    "StaffLookup",
    "staff_names",
]
