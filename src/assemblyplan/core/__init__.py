"""Core utilities shared across assemblyplan modules."""

from .errors import AssemblyValueError

__all__ = ["AssemblyValueError"]
