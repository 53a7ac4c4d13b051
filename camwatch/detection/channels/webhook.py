"""
Webhook notification channel.

Posts a JSON notification for each admitted alert to an HTTP endpoint, for
example a push-notification relay used by the dashboard.

Example:
    >>> channel = WebhookChannel(webhook_url="https://notify.example/hooks/abc")
    >>> await channel.notify(alert)
    >>> await channel.close()
"""

import asyncio
from typing import Any, Dict, Optional

import aiohttp
import structlog

from camwatch.detection.channels.console import notification_title
from camwatch.models.alerts import Alert

logger = structlog.get_logger(__name__)


DEFAULT_TIMEOUT_SECONDS = 5


class WebhookChannel:
    """
    Notification channel posting alerts to a webhook.

    Delivery errors are raised as ConnectionError so the dispatcher can
    record them; this channel does not retry.

    Attributes:
        webhook_url: Endpoint receiving the POST.
        timeout_seconds: Total request timeout.
        enabled: When False, notify is a no-op.
    """

    def __init__(
        self,
        webhook_url: str,
        timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
        enabled: bool = True,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        """
        Initialize the webhook channel.

        Args:
            webhook_url: Endpoint receiving the POST.
            timeout_seconds: Total request timeout.
            enabled: Whether the channel sends anything.
            session: Existing session to reuse. It stays owned by the
                caller and is not closed by close().
        """
        self.webhook_url = webhook_url
        self.timeout_seconds = timeout_seconds
        self.enabled = enabled
        self._session = session
        self._owns_session = session is None

        logger.info(
            "webhook_channel_initialized",
            enabled=enabled,
            timeout_seconds=timeout_seconds,
        )

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure aiohttp session is created."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
            self._session = aiohttp.ClientSession(
                timeout=timeout,
                headers={"User-Agent": "camwatch/1.0"},
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if this channel created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
            logger.debug("webhook_session_closed")

    @staticmethod
    def build_payload(alert: Alert) -> Dict[str, Any]:
        """
        Build the JSON body for an alert.

        Args:
            alert: The alert to send.

        Returns:
            Dict[str, Any]: JSON-serialisable payload. ``tag`` lets the
                receiver collapse repeated deliveries of one alert.
        """
        return {
            "title": notification_title(alert),
            "body": alert.description,
            "tag": alert.alert_id,
            "alert_id": alert.alert_id,
            "alert_type": alert.alert_type.value,
            "severity": alert.severity.value,
            "confidence": round(alert.confidence, 1),
            "source_id": alert.source_id,
            "source_name": alert.source_name,
            "created_at": alert.created_at.isoformat(),
            "require_interaction": alert.severity.is_urgent,
        }

    async def notify(self, alert: Alert) -> None:
        """
        POST the alert to the webhook.

        Args:
            alert: The alert to send.

        Raises:
            ConnectionError: If the request fails or returns an error status.
        """
        if not self.enabled:
            return

        session = await self._ensure_session()

        try:
            async with session.post(self.webhook_url, json=self.build_payload(alert)) as response:
                if response.status >= 400:
                    error_text = await response.text()
                    raise ConnectionError(
                        f"webhook returned status {response.status}: {error_text}"
                    )
        except aiohttp.ClientError as e:
            raise ConnectionError(f"webhook request failed: {e}") from e
        except asyncio.TimeoutError as e:
            raise ConnectionError(
                f"webhook request timeout after {self.timeout_seconds}s"
            ) from e

        logger.debug(
            "webhook_notification_sent",
            alert_id=alert.alert_id,
        )


def create_webhook_channel(
    webhook_url: str,
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
    enabled: bool = True,
) -> WebhookChannel:
    """
    Factory function to create a WebhookChannel.

    Args:
        webhook_url: Endpoint receiving the POST.
        timeout_seconds: Total request timeout.
        enabled: Whether the channel sends anything.

    Returns:
        WebhookChannel: The channel.
    """
    return WebhookChannel(
        webhook_url=webhook_url,
        timeout_seconds=timeout_seconds,
        enabled=enabled,
    )
