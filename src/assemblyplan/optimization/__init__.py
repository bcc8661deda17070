"""Shift allocation solvers."""
