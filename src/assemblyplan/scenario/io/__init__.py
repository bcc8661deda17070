"""Session input adapters."""

from .loaders import load_session, parse_groups_csv, parse_roster_csv, parse_roster_text, read_csv

__all__ = ["load_session", "parse_groups_csv", "parse_roster_csv", "parse_roster_text", "read_csv"]
