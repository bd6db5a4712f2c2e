"""Data access helpers for courts, reservations and schedule blocks."""
