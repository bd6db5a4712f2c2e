"""Pydantic schemas for the reservation engine API."""
