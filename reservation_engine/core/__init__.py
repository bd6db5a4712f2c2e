"""Core infrastructure: settings, database session, errors."""

from reservation_engine.core.config import settings
from reservation_engine.core.exceptions import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    OutOfWindowError,
    ReservationEngineError,
    StorageError,
    ValidationError,
)

__all__ = [
    "settings",
    "ConflictError",
    "InvalidStateError",
    "NotFoundError",
    "OutOfWindowError",
    "ReservationEngineError",
    "StorageError",
    "ValidationError",
]
