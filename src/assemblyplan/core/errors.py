"""Common assemblyplan-specific exceptions."""

class AssemblyValueError(ValueError):
    """Raised when assemblyplan detects invalid user-provided data."""


__all__ = ["AssemblyValueError"]
