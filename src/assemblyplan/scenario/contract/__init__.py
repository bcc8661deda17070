"""Session contract models (Pydantic schemas, validators)."""

from .models import (
    AssemblySettings,
    ConstraintSet,
    Group,
    Session,
    StaffRoster,
    WeekVariant,
    normalize_day,
)

__all__ = [
    "WeekVariant",
    "Group",
    "ConstraintSet",
    "StaffRoster",
    "AssemblySettings",
    "Session",
    "normalize_day",
]
