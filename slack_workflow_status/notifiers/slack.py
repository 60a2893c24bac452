from __future__ import annotations

from dataclasses import dataclass
import logging

import httpx

from .base import BaseNotifier
from .message import NotificationDocument


class DeliveryError(RuntimeError):
    """Raised when the Slack webhook does not accept the notification."""


@dataclass
class SlackSettings:
    webhook_url: str
    timeout_seconds: int
    user_agent: str


class SlackNotifier(BaseNotifier):
    def __init__(self, settings: SlackSettings) -> None:
        self._settings = settings
        self._logger = logging.getLogger(__name__)

    async def send(self, document: NotificationDocument) -> bool:
        payload = document.to_payload()
        headers = {"User-Agent": self._settings.user_agent}

        async with httpx.AsyncClient(timeout=self._settings.timeout_seconds) as client:
            response = await client.post(self._settings.webhook_url, json=payload, headers=headers)
        if 200 <= response.status_code < 300:
            self._logger.info("Slack notification delivered")
            return True
        self._logger.error(
            "Slack webhook failed with status %s: %s", response.status_code, response.text[:200]
        )
        return False
