"""SMS gateway client for a Twilio-compatible messages endpoint."""

import logging

import httpx

from dtbooking.config import settings
from dtbooking.notifications.base import SmsSender

logger = logging.getLogger(__name__)


class HttpSmsSender(SmsSender):
    def __init__(
        self,
        api_url: str | None = None,
        account_sid: str | None = None,
        auth_token: str | None = None,
        timeout: float | None = None,
    ):
        self.api_url = (api_url or settings.sms_api_url).rstrip("/")
        self.account_sid = account_sid if account_sid is not None else settings.sms_account_sid
        self.auth_token = auth_token if auth_token is not None else settings.sms_auth_token
        self.timeout = timeout or settings.sms_timeout_seconds

    @property
    def configured(self) -> bool:
        return bool(self.account_sid and self.auth_token)

    async def send(self, from_number: str, to_number: str, message: str) -> bool:
        if not to_number:
            logger.debug("No phone number provided, SMS skipped")
            return False
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    f"{self.api_url}/Accounts/{self.account_sid}/Messages.json",
                    auth=(self.account_sid, self.auth_token),
                    data={"From": from_number, "To": to_number, "Body": message},
                    timeout=self.timeout,
                )
        except httpx.HTTPError as exc:
            logger.error("SMS request to %s failed: %s", to_number, exc)
            return False

        if response.status_code in (200, 201):
            return True
        logger.warning("SMS gateway returned %s for %s: %s", response.status_code, to_number, response.text)
        return False
