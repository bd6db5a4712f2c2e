"""Typed errors raised by the reservation engine.

Every precondition failure surfaces as one of these classes so the HTTP layer
(or any other caller) can render a precise message from ``details`` without
parsing strings.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional


class ReservationEngineError(Exception):
    """Base class for all engine errors."""

    status_code: int = 400
    code: str = "reservation_error"
    retryable: bool = False

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = dict(details or {})

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"detail": self.message, "code": self.code}
        payload.update(self.details)
        return payload


class NotFoundError(ReservationEngineError):
    status_code = 404
    code = "not_found"

    def __init__(self, entity: str, identifier: Any) -> None:
        super().__init__(
            f"{entity} not found",
            details={"entity": entity.lower(), "id": identifier},
        )
        self.entity = entity
        self.identifier = identifier


class ConflictError(ReservationEngineError):
    """The requested window cannot be booked; carries every violation found."""

    status_code = 409
    code = "conflict"

    def __init__(self, message: str, violations: Iterable[Any] = ()) -> None:
        self.violations = list(violations)
        super().__init__(
            message,
            details={"violations": [_violation_as_dict(item) for item in self.violations]},
        )

    @property
    def kinds(self) -> list[str]:
        return [_violation_as_dict(item).get("kind") for item in self.violations]


class InvalidStateError(ReservationEngineError):
    status_code = 409
    code = "invalid_state"

    def __init__(self, operation: str, current_status: str, *, concurrent: bool = False) -> None:
        if concurrent:
            message = (
                f"Reservation was changed concurrently and is now in status '{current_status}'"
            )
        else:
            message = f"Cannot {operation} a reservation in status '{current_status}'"
        super().__init__(
            message,
            details={
                "operation": operation,
                "current_status": current_status,
                "concurrent": concurrent,
            },
        )
        self.operation = operation
        self.current_status = current_status
        self.concurrent = concurrent


class OutOfWindowError(ReservationEngineError):
    status_code = 422
    code = "out_of_window"

    def __init__(self, message: str, *, opens_at: Any = None, closes_at: Any = None) -> None:
        super().__init__(
            message,
            details={
                "opens_at": opens_at.isoformat() if opens_at is not None else None,
                "closes_at": closes_at.isoformat() if closes_at is not None else None,
            },
        )
        self.opens_at = opens_at
        self.closes_at = closes_at


class ValidationError(ReservationEngineError):
    status_code = 422
    code = "validation_error"

    def __init__(self, message: str, *, field: Optional[str] = None) -> None:
        super().__init__(message, details={"field": field} if field else None)
        self.field = field


class StorageError(ReservationEngineError):
    """Opaque store failure. The only error a caller may retry."""

    status_code = 503
    code = "storage_error"
    retryable = True

    def __init__(self, message: str = "The reservation store is unavailable") -> None:
        super().__init__(message, details={"retryable": True})


def _violation_as_dict(violation: Any) -> Dict[str, Any]:
    if isinstance(violation, dict):
        return violation
    as_dict = getattr(violation, "as_dict", None)
    if callable(as_dict):
        return as_dict()
    return {"kind": None, "message": str(violation)}


__all__ = [
    "ReservationEngineError",
    "NotFoundError",
    "ConflictError",
    "InvalidStateError",
    "OutOfWindowError",
    "ValidationError",
    "StorageError",
]
