"""Command-line interface for assemblyplan."""
