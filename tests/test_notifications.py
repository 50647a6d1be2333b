"""
Ledgerbook - Notification Tests

Webhook delivery through a mocked httpx transport.
"""

import httpx

from ledgerbook.config import NotificationConfig
from ledgerbook.services.notification_service import NotificationService

WEBHOOK = "http://hooks.test/ledgerbook"


def service(handler, **settings) -> NotificationService:
    config = NotificationConfig(webhook_url=WEBHOOK, initial_delay=0, **settings)
    return NotificationService(config, transport=httpx.MockTransport(handler))


class TestWebhook:

    async def test_event_posted_as_json(self):
        received = []

        def handler(request: httpx.Request) -> httpx.Response:
            received.append(request)
            return httpx.Response(200)

        notifications = service(handler)
        delivered = await notifications.send("approval.requested", {"voucherNumber": "SV/0001"})

        assert delivered is True
        assert notifications.sent_count == 1
        assert str(received[0].url) == WEBHOOK
        body = received[0].read()
        assert b'"event":"approval.requested"' in body.replace(b" ", b"")

    async def test_failure_retried_then_swallowed(self):
        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            return httpx.Response(503)

        notifications = service(handler, max_attempts=2)
        delivered = await notifications.send("recurring.failure", {"name": "Office rent"})

        assert delivered is False
        assert len(attempts) == 2
        assert notifications.failed_count == 1

    async def test_disabled_sends_nothing(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        notifications = service(handler, enabled=False)

        assert await notifications.send("approval.requested", {}) is False
        assert notifications.sent_count == 0
