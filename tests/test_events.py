import json
import logging
from datetime import datetime
from decimal import Decimal

import httpx

from reservation_engine.services.events import (
    RESERVATION_CANCELLED,
    RESERVATION_CREATED,
    LifecycleEventPublisher,
    ReservationEvent,
)
from reservation_engine.services.notification_client import NotificationClient

OCCURRED_AT = datetime(2026, 3, 9, 9, 0)


def make_event(name=RESERVATION_CANCELLED, **data):
    return ReservationEvent(
        name=name,
        reservation_id=11,
        court_id=2,
        user_id=7,
        status="cancelled",
        occurred_at=OCCURRED_AT,
        data=data,
    )


def test_event_payload_is_json_ready():
    payload = make_event(refund_amount=Decimal("391.50"), reason=None).as_payload()

    assert payload == {
        "event": "reservation.cancelled",
        "reservation_id": 11,
        "court_id": 2,
        "user_id": 7,
        "status": "cancelled",
        "occurred_at": "2026-03-09T09:00:00",
        "data": {"refund_amount": "391.50", "reason": None},
    }
    json.dumps(payload)


def test_failing_subscriber_does_not_stop_the_others(caplog):
    received = []

    def broken(event):
        raise RuntimeError("boom")

    publisher = LifecycleEventPublisher()
    publisher.subscribe(broken)
    publisher.subscribe(received.append)

    with caplog.at_level(logging.ERROR):
        publisher.publish(make_event(RESERVATION_CREATED))

    assert [event.name for event in received] == [RESERVATION_CREATED]
    assert "failed for reservation.created" in caplog.text


def test_reservation_survives_a_broken_subscriber(book, publisher, published):
    publisher.subscribe(lambda event: 1 / 0)

    reservation = book()

    assert reservation.id_reservation is not None
    assert [event.name for event in published] == [RESERVATION_CREATED]


def test_notification_client_posts_event_payload():
    captured = []

    def handler(request):
        captured.append(request)
        return httpx.Response(202, json={"accepted": True})

    client = NotificationClient(
        base_url="http://notifications.local/", transport=httpx.MockTransport(handler)
    )

    client(make_event())

    assert len(captured) == 1
    request = captured[0]
    assert request.method == "POST"
    assert request.url.path == "/api/pichangapp/v1/notification/notifications/reservation-events"
    assert json.loads(request.content)["event"] == "reservation.cancelled"


def test_notification_client_logs_http_errors(caplog):
    client = NotificationClient(
        base_url="http://notifications.local",
        transport=httpx.MockTransport(lambda request: httpx.Response(500, text="down")),
    )

    with caplog.at_level(logging.WARNING):
        client.send_reservation_event(make_event().as_payload())

    assert "returned HTTP 500" in caplog.text


def test_notification_client_logs_transport_errors(caplog):
    def unreachable(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = NotificationClient(
        base_url="http://notifications.local", transport=httpx.MockTransport(unreachable)
    )

    with caplog.at_level(logging.WARNING):
        client.send_reservation_event(make_event().as_payload())

    assert "Failed to reach notification service" in caplog.text


def test_unconfigured_client_skips_dispatch():
    calls = []
    client = NotificationClient(
        base_url="", transport=httpx.MockTransport(lambda request: calls.append(request))
    )

    assert not client.is_configured
    client.send_reservation_event(make_event().as_payload())
    assert calls == []
