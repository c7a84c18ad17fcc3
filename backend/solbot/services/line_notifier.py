"""
LINE Messaging API push notifier.

Sends plain-text cycle summaries to a single LINE user.
"""

import logging
from typing import Optional

import httpx

from solbot.exceptions import ConfigurationOrRequestError, TransientNetworkError

logger = logging.getLogger(__name__)

LINE_PUSH_URL = "https://api.line.me/v2/bot/message/push"


class LineNotifier:
    """
    Usage:
        notifier = LineNotifier(settings.line_channel_token, settings.line_user_id)
        await notifier.send_message("Trade executed!")
        await notifier.close()
    """

    def __init__(
        self,
        channel_token: str,
        user_id: str,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.channel_token = channel_token
        self.user_id = user_id
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    @property
    def enabled(self) -> bool:
        return bool(self.channel_token and self.user_id)

    async def close(self):
        await self._client.aclose()

    async def send_message(self, text: str) -> bool:
        """
        Push a text message.

        Returns:
            False when notifications are not configured

        Raises:
            TransientNetworkError: network failure or 5xx
            ConfigurationOrRequestError: LINE rejected the request
        """
        if not self.enabled:
            logger.debug("LINE notifier not configured, skipping message")
            return False

        payload = {
            "to": self.user_id,
            "messages": [{"type": "text", "text": text}],
        }
        headers = {"Authorization": f"Bearer {self.channel_token}"}

        try:
            response = await self._client.post(LINE_PUSH_URL, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise TransientNetworkError(f"Failed to send LINE message: {e}")

        if response.status_code >= 500:
            raise TransientNetworkError(f"LINE API error {response.status_code}: {response.text}")
        if response.status_code >= 400:
            logger.error(f"LINE API error: {response.text}")
            raise ConfigurationOrRequestError(
                f"Failed to send LINE message: {response.text}", status_code=response.status_code
            )

        logger.info("LINE message sent successfully")
        return True
