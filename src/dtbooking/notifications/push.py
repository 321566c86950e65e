"""OneSignal push gateway client."""

import logging
from typing import Any

import httpx

from dtbooking.config import settings
from dtbooking.notifications.base import PushSender

logger = logging.getLogger(__name__)


class OneSignalPushSender(PushSender):
    """Posts notifications to ``{onesignal_api_url}/notifications``.

    The app id and REST key are chosen by ``app_env``; audience targeting is
    carried in the ``tags`` field built by the dispatcher.
    """

    def __init__(
        self,
        api_url: str | None = None,
        app_id: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
    ):
        self.api_url = (api_url or settings.onesignal_api_url).rstrip("/")
        self.app_id = app_id if app_id is not None else settings.onesignal_app_id
        self.api_key = api_key if api_key is not None else settings.onesignal_api_key
        self.timeout = timeout or settings.push_timeout_seconds

    @property
    def configured(self) -> bool:
        return bool(self.app_id and self.api_key)

    async def send(self, fields: dict[str, Any]) -> dict[str, Any]:
        payload = {**fields, "app_id": self.app_id}
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Basic {self.api_key}",
        }
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    f"{self.api_url}/notifications",
                    json=payload,
                    headers=headers,
                    timeout=self.timeout,
                )
        except httpx.HTTPError as exc:
            logger.error("OneSignal request failed: %s", exc)
            return {"error": str(exc)}

        if response.status_code >= 400:
            logger.warning("OneSignal returned %s: %s", response.status_code, response.text)
            return {"error": f"HTTP {response.status_code}", "body": response.text}
        try:
            return response.json()
        except ValueError:
            return {"body": response.text}
