from .models import ShiftCalendar, ShiftDefinition, default_shifts, shift_ids

__all__ = ["ShiftDefinition", "ShiftCalendar", "default_shifts", "shift_ids"]
