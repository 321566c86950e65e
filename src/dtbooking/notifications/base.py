"""Abstract transports used by the notification dispatcher."""

from abc import ABC, abstractmethod
from typing import Any


class Mailer(ABC):
    """Sends a templated email to one recipient."""

    @abstractmethod
    async def send(
        self,
        email: str,
        name: str,
        subject: str,
        template: str,
        data: dict[str, Any],
    ) -> bool:
        """Render ``template`` with ``data`` and deliver it.

        Returns:
            True if the transport accepted the message.
        """
        ...


class PushSender(ABC):
    """Delivers a push notification described by gateway ``fields``."""

    @property
    def configured(self) -> bool:
        return True

    @abstractmethod
    async def send(self, fields: dict[str, Any]) -> dict[str, Any]:
        """Send the notification.

        Returns:
            The gateway response body, or ``{"error": ...}`` on failure.
        """
        ...


class SmsSender(ABC):
    """Delivers a text message."""

    @property
    def configured(self) -> bool:
        return True

    @abstractmethod
    async def send(self, from_number: str, to_number: str, message: str) -> bool:
        """Send ``message`` and return True if the gateway accepted it."""
        ...
