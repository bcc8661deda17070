"""Planning utilities around the shift partition.

This package holds the immutable partition snapshot mutated by manual moves and by the
auto-assignment engine, plus JSON session snapshots for import/export. Modules here are
library-friendly entry points shared by the CLI and Python callers.
"""

from assemblyplan.planning.partition import UNASSIGNED, ShiftPartition, format_shift_listing
from assemblyplan.planning.snapshot import SessionSnapshot, export_snapshot, import_snapshot

__all__ = [
    "UNASSIGNED",
    "ShiftPartition",
    "format_shift_listing",
    "SessionSnapshot",
    "export_snapshot",
    "import_snapshot",
]
