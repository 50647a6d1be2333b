"""
Notification Service Module
Best-effort delivery of workflow events

Every event is logged. When a webhook URL is configured the event is also
POSTed as JSON; delivery is retried with backoff and a final failure is only
logged, never raised to the caller.
"""

from typing import Any, Dict, Optional

import httpx

from ..config import NotificationConfig, config
from ..utils.decorators import retry
from ..utils.helpers import get_current_timestamp
from ..utils.logger import logger


class NotificationService:
    """Sends workflow notifications without failing the calling operation"""

    def __init__(self, settings: Optional[NotificationConfig] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings or config.notifications
        self.transport = transport
        self.sent_count = 0
        self.failed_count = 0

    async def _post(self, body: Dict[str, Any]) -> None:
        async with httpx.AsyncClient(timeout=self.settings.timeout, transport=self.transport) as client:
            response = await client.post(self.settings.webhook_url, json=body)
            response.raise_for_status()

    async def _deliver(self, body: Dict[str, Any]) -> None:
        deliver = retry(
            max_attempts=self.settings.max_attempts,
            initial_delay=self.settings.initial_delay,
            exceptions=(httpx.HTTPError,),
        )(self._post)
        await deliver(body)

    async def send(self, event: str, payload: Dict[str, Any]) -> bool:
        """Returns True when the event was delivered (or only logged)"""
        if not self.settings.enabled:
            return False

        logger.info(f"Notification: {event} {payload}")
        if not self.settings.webhook_url:
            self.sent_count += 1
            return True

        body = {"event": event, "payload": payload, "timestamp": get_current_timestamp()}
        try:
            await self._deliver(body)
        except Exception as e:
            self.failed_count += 1
            logger.warning(f"Notification '{event}' could not be delivered: {e}")
            return False

        self.sent_count += 1
        return True


# Global service instance
notification_service = NotificationService()
