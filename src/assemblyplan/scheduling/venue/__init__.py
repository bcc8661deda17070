"""Venue layout metadata."""

from .models import RowSeats, Side, VenueBlock, VenueLayout, default_venue

__all__ = ["Side", "RowSeats", "VenueBlock", "VenueLayout", "default_venue"]
