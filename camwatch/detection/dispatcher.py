"""
Alert dispatcher for notification and sound side effects.

This module provides the AlertDispatcher class which performs the side
effects of admitting an alert: one notification dispatch routed by severity
and one sound-cue request.

Key Features:
    - Routes notifications to named channels by severity
    - Requests the alert type's sound cue at the configured volume
    - Independent sound and notification toggles, both on by default
    - Delivery failures are logged and recorded, never raised

Example:
    >>> dispatcher = AlertDispatcher(
    ...     channels={"console": ConsoleChannel()},
    ...     sound_sink=LogSoundSink(),
    ... )
    >>> await dispatcher.dispatch(alert)
"""

from collections import deque
from typing import Deque, Dict, List, Optional, Protocol

import structlog

from camwatch.errors import SinkDeliveryFailure
from camwatch.models.alerts import Alert, AlertSeverity

logger = structlog.get_logger(__name__)


class NotificationChannel(Protocol):
    """
    Protocol for notification channels.

    Any channel implementation must support this async method.
    """

    async def notify(self, alert: Alert) -> None:
        """Deliver a notification for an admitted alert."""
        ...


class SoundSink(Protocol):
    """Protocol for sound playback sinks."""

    async def play(self, cue_id: str, volume: float) -> None:
        """Play the named cue at the given volume."""
        ...


# Default severity to channels mapping
DEFAULT_SEVERITY_CHANNELS: Dict[AlertSeverity, List[str]] = {
    AlertSeverity.CRITICAL: ["console", "webhook"],
    AlertSeverity.HIGH: ["console", "webhook"],
    AlertSeverity.MEDIUM: ["console"],
    AlertSeverity.LOW: ["console"],
}

DEFAULT_VOLUME = 0.7
SOUND_SINK_NAME = "sound"
FAILURE_LOG_SIZE = 100


class AlertDispatcher:
    """
    Delivers the side effects of alert admission.

    Attributes:
        channels: Dict mapping channel name to channel instance.
        severity_channels: Dict mapping severity to channel names.
        sound_sink: Sink receiving cue requests, if any.
        sound_enabled: Whether cue requests are sent.
        notifications_enabled: Whether notifications are sent.
        volume: Cue volume, 0.0 to 1.0.
        delivery_failures: Most recent SinkDeliveryFailure records.

    Example:
        >>> dispatcher = AlertDispatcher(
        ...     channels={"console": console, "webhook": webhook},
        ...     sound_sink=LogSoundSink(),
        ...     severity_channels=DEFAULT_SEVERITY_CHANNELS,
        ... )
        >>> dispatcher.set_sound_enabled(False)
        >>> await dispatcher.dispatch(alert)  # notification only
    """

    def __init__(
        self,
        channels: Optional[Dict[str, NotificationChannel]] = None,
        sound_sink: Optional[SoundSink] = None,
        severity_channels: Optional[Dict[AlertSeverity, List[str]]] = None,
        sound_enabled: bool = True,
        notifications_enabled: bool = True,
        volume: float = DEFAULT_VOLUME,
    ) -> None:
        """
        Initialize the dispatcher.

        Args:
            channels: Dict mapping channel name to channel instance.
            sound_sink: Sink for cue requests.
            severity_channels: Dict mapping severity to channel names.
                Defaults to DEFAULT_SEVERITY_CHANNELS restricted to the
                channels actually provided.
            sound_enabled: Initial sound toggle.
            notifications_enabled: Initial notification toggle.
            volume: Initial cue volume.

        Raises:
            ValueError: If volume is outside 0.0 to 1.0.
        """
        self.channels: Dict[str, NotificationChannel] = dict(channels or {})
        self.sound_sink = sound_sink
        self.sound_enabled = sound_enabled
        self.notifications_enabled = notifications_enabled
        self.volume = DEFAULT_VOLUME
        self.set_volume(volume)

        if severity_channels is None:
            severity_channels = {
                severity: [name for name in names if name in self.channels]
                for severity, names in DEFAULT_SEVERITY_CHANNELS.items()
            }
        self.severity_channels: Dict[AlertSeverity, List[str]] = {
            severity: list(names) for severity, names in severity_channels.items()
        }

        self.delivery_failures: Deque[SinkDeliveryFailure] = deque(maxlen=FAILURE_LOG_SIZE)

        logger.info(
            "alert_dispatcher_initialized",
            available_channels=list(self.channels.keys()),
            routing={s.value: ch for s, ch in self.severity_channels.items()},
            sound_sink=sound_sink is not None,
            sound_enabled=sound_enabled,
            notifications_enabled=notifications_enabled,
        )

    async def dispatch(self, alert: Alert) -> int:
        """
        Deliver the notification and sound cue for one admitted alert.

        Args:
            alert: The newly admitted alert.

        Returns:
            int: Number of successful deliveries (channels plus sound).
        """
        delivered = 0

        if self.notifications_enabled:
            delivered += await self._notify(alert)

        if self.sound_enabled and self.sound_sink is not None:
            try:
                await self.sound_sink.play(alert.sound_cue, self.volume)
                delivered += 1
            except Exception as e:
                self._record_failure(SOUND_SINK_NAME, alert, e)

        logger.info(
            "alert_dispatch_complete",
            alert_id=alert.alert_id,
            delivered=delivered,
            notifications_enabled=self.notifications_enabled,
            sound_enabled=self.sound_enabled,
        )
        return delivered

    async def _notify(self, alert: Alert) -> int:
        """Send the alert to every channel routed for its severity."""
        channel_names = self.severity_channels.get(alert.severity, [])
        notified = 0

        for channel_name in channel_names:
            channel = self.channels.get(channel_name)
            if channel is None:
                logger.warning(
                    "channel_not_found",
                    channel_name=channel_name,
                    alert_id=alert.alert_id,
                )
                continue

            try:
                await channel.notify(alert)
                notified += 1

                logger.debug(
                    "alert_dispatched_to_channel",
                    channel=channel_name,
                    alert_id=alert.alert_id,
                    severity=alert.severity.value,
                )

            except Exception as e:
                self._record_failure(channel_name, alert, e)

        return notified

    def _record_failure(self, sink: str, alert: Alert, error: Exception) -> None:
        """Log a delivery failure and keep it for later inspection."""
        failure = SinkDeliveryFailure(sink=sink, alert_id=alert.alert_id, cause=error)
        self.delivery_failures.append(failure)
        logger.error(
            "channel_dispatch_failed",
            channel=sink,
            alert_id=alert.alert_id,
            error=str(error),
        )

    def set_sound_enabled(self, enabled: bool) -> None:
        """Toggle sound cue requests."""
        self.sound_enabled = enabled
        logger.info("sound_toggled", enabled=enabled)

    def set_notifications_enabled(self, enabled: bool) -> None:
        """Toggle notification delivery."""
        self.notifications_enabled = enabled
        logger.info("notifications_toggled", enabled=enabled)

    def set_volume(self, volume: float) -> None:
        """
        Set the cue volume.

        Args:
            volume: Volume between 0.0 and 1.0.

        Raises:
            ValueError: If volume is out of range.
        """
        if not (0.0 <= volume <= 1.0):
            raise ValueError(f"volume must be between 0.0 and 1.0, got {volume}")
        self.volume = float(volume)

    def add_channel(self, name: str, channel: NotificationChannel) -> None:
        """
        Add a new channel to the dispatcher.

        The channel receives nothing until a severity routes to it.

        Args:
            name: Channel name.
            channel: Channel instance.
        """
        self.channels[name] = channel
        logger.info("channel_added", channel_name=name)

    def remove_channel(self, name: str) -> bool:
        """
        Remove a channel from the dispatcher.

        Args:
            name: Channel name to remove.

        Returns:
            bool: True if channel was removed, False if not found.
        """
        if name in self.channels:
            del self.channels[name]
            logger.info("channel_removed", channel_name=name)
            return True
        return False

    def set_severity_channels(
        self,
        severity: AlertSeverity,
        channels: List[str],
    ) -> None:
        """
        Set the channels for a specific severity.

        Args:
            severity: The severity level.
            channels: List of channel names.
        """
        self.severity_channels[severity] = list(channels)
        logger.info(
            "severity_channels_updated",
            severity=severity.value,
            channels=channels,
        )

    def get_channels_for_severity(self, severity: AlertSeverity) -> List[str]:
        """Get channel names configured for a severity."""
        return self.severity_channels.get(severity, [])

    async def close(self) -> None:
        """Close channels that hold network resources."""
        for name, channel in self.channels.items():
            close = getattr(channel, "close", None)
            if close is None:
                continue
            try:
                await close()
            except Exception as e:
                logger.warning("channel_close_failed", channel=name, error=str(e))


async def create_dispatcher(
    console_format: str = "structured",
    console_colors: bool = True,
    console_enabled: bool = True,
    webhook_url: Optional[str] = None,
    webhook_enabled: bool = True,
    webhook_timeout_seconds: int = 5,
    severity_channels: Optional[Dict[AlertSeverity, List[str]]] = None,
    sound_sink: Optional[SoundSink] = None,
    sound_enabled: bool = True,
    notifications_enabled: bool = True,
    volume: float = DEFAULT_VOLUME,
) -> AlertDispatcher:
    """
    Factory function to create an AlertDispatcher with default channels.

    Creates the console channel unless disabled, a webhook channel if a
    URL is given, and a log-only sound sink unless one is supplied.

    Args:
        console_format: Console output format ("structured" or "simple").
        console_colors: Whether to use ANSI colors in console output.
        console_enabled: Whether to create the console channel.
        webhook_url: Webhook endpoint; no webhook channel when None.
        webhook_enabled: Whether the webhook channel is enabled.
        webhook_timeout_seconds: Webhook request timeout.
        severity_channels: Custom severity to channels mapping.
        sound_sink: Sound sink; defaults to LogSoundSink.
        sound_enabled: Initial sound toggle.
        notifications_enabled: Initial notification toggle.
        volume: Initial cue volume.

    Returns:
        AlertDispatcher: Configured dispatcher instance.
    """
    from camwatch.detection.channels.console import ConsoleChannel, OutputFormat
    from camwatch.detection.channels.sound import LogSoundSink
    from camwatch.detection.channels.webhook import WebhookChannel

    channels: Dict[str, NotificationChannel] = {}

    if console_enabled:
        channels["console"] = ConsoleChannel(
            format=OutputFormat(console_format),
            use_colors=console_colors,
        )

    if webhook_enabled and webhook_url:
        channels["webhook"] = WebhookChannel(
            webhook_url=webhook_url,
            timeout_seconds=webhook_timeout_seconds,
        )

    if severity_channels is not None:
        unavailable = {
            name
            for names in severity_channels.values()
            for name in names
            if name not in channels
        }
        if unavailable:
            logger.warning(
                "routed_channels_unavailable",
                channels=sorted(unavailable),
            )
        severity_channels = {
            severity: [name for name in names if name in channels]
            for severity, names in severity_channels.items()
        }

    return AlertDispatcher(
        channels=channels,
        sound_sink=sound_sink if sound_sink is not None else LogSoundSink(),
        severity_channels=severity_channels,
        sound_enabled=sound_enabled,
        notifications_enabled=notifications_enabled,
        volume=volume,
    )
