"""Shift allocation, staff-handoff checks, and auditorium seating for school assemblies."""

__version__ = "0.3.0"
