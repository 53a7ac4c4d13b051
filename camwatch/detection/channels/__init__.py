"""
Alert notification channels and sound sinks.

Components:
    console: Console/log output for alerts
    webhook: HTTP webhook notifications (aiohttp)
    sound: Log-only sound sink

Example:
    >>> from camwatch.detection.channels import ConsoleChannel, WebhookChannel
    >>>
    >>> console = ConsoleChannel(format=OutputFormat.SIMPLE)
    >>> webhook = WebhookChannel(webhook_url="https://notify.example/hooks/abc")
    >>>
    >>> await console.notify(alert)
    >>> await webhook.notify(alert)
"""

from camwatch.detection.channels.console import (
    AnsiColors,
    ConsoleChannel,
    OutputFormat,
    create_console_channel,
    notification_title,
)
from camwatch.detection.channels.sound import LogSoundSink
from camwatch.detection.channels.webhook import (
    WebhookChannel,
    create_webhook_channel,
)

__all__ = [
    # Console
    "ConsoleChannel",
    "OutputFormat",
    "AnsiColors",
    "create_console_channel",
    "notification_title",
    # Webhook
    "WebhookChannel",
    "create_webhook_channel",
    # Sound
    "LogSoundSink",
]
