from __future__ import annotations

from abc import ABC, abstractmethod

from .message import NotificationDocument


class BaseNotifier(ABC):
    @abstractmethod
    async def send(self, document: NotificationDocument) -> bool:
        """Deliver the document once. Returns True if successful."""
        raise NotImplementedError
