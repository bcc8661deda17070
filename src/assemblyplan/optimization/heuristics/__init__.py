"""Heuristic solvers for assemblyplan."""

from .auto_assign import (
    AutoAssignResult,
    RandomSource,
    auto_assign,
    is_eligible,
    preference_order,
    shuffled,
)

__all__ = [
    "AutoAssignResult",
    "RandomSource",
    "auto_assign",
    "is_eligible",
    "preference_order",
    "shuffled",
]
