"""HTTP client for forwarding lifecycle events to the notification microservice."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from reservation_engine.core.config import settings
from reservation_engine.services.events import ReservationEvent

logger = logging.getLogger(__name__)


class NotificationClient:
    """Small wrapper around the notification API endpoints."""

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        configured_base = base_url if base_url is not None else settings.NOTIFICATION_SERVICE_URL
        self._base_url = configured_base.rstrip("/") if configured_base else ""
        self._timeout = timeout or settings.NOTIFICATION_SERVICE_TIMEOUT
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self._base_url)

    def send_reservation_event(self, payload: Dict[str, Any]) -> None:
        if not self.is_configured:
            logger.info("Notification service URL not configured; skipping event dispatch")
            return

        url = f"{self._base_url}/api/pichangapp/v1/notification/notifications/reservation-events"

        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.post(url, json=payload)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "Notification service returned HTTP %s while sending %s: %s",
                exc.response.status_code,
                payload.get("event"),
                exc.response.text,
            )
        except httpx.RequestError as exc:
            logger.warning("Failed to reach notification service: %s", exc)

    def __call__(self, event: ReservationEvent) -> None:
        self.send_reservation_event(event.as_payload())


__all__ = ["NotificationClient"]
