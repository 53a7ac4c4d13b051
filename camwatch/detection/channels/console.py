"""
Console notification channel.

Writes alert notifications either as structured log events or as a simple
coloured one-line banner, the terminal counterpart of a desktop
notification.

Example:
    >>> channel = ConsoleChannel(format=OutputFormat.SIMPLE, use_colors=False)
    >>> await channel.notify(alert)
    [CRITICAL] Security Alert - Front Door: Motion detected (95.0% intensity)
"""

import sys
from enum import Enum
from typing import Dict, Optional, TextIO

import structlog

from camwatch.models.alerts import Alert, AlertSeverity

logger = structlog.get_logger(__name__)


class OutputFormat(str, Enum):
    """Console output formats."""

    STRUCTURED = "structured"
    SIMPLE = "simple"


class AnsiColors:
    """ANSI escape sequences used for severity colouring."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    RED = "\033[31m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"


SEVERITY_COLORS: Dict[AlertSeverity, str] = {
    AlertSeverity.CRITICAL: AnsiColors.BOLD + AnsiColors.RED,
    AlertSeverity.HIGH: AnsiColors.RED,
    AlertSeverity.MEDIUM: AnsiColors.YELLOW,
    AlertSeverity.LOW: AnsiColors.BLUE,
}


def notification_title(alert: Alert) -> str:
    """Title shown for an alert notification."""
    return f"Security Alert - {alert.source_name}"


class ConsoleChannel:
    """
    Notification channel writing to the console.

    Attributes:
        format: Structured log event or simple text line.
        use_colors: Whether simple lines carry ANSI colours.
        stream: Where simple lines are written.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.STRUCTURED,
        use_colors: bool = True,
        stream: Optional[TextIO] = None,
    ) -> None:
        self.format = format
        self.use_colors = use_colors
        self.stream = stream if stream is not None else sys.stdout

    async def notify(self, alert: Alert) -> None:
        """
        Write a notification for a newly admitted alert.

        Args:
            alert: The alert to announce.
        """
        if self.format == OutputFormat.STRUCTURED:
            logger.warning(
                "security_alert",
                title=notification_title(alert),
                alert_id=alert.alert_id,
                alert_type=alert.alert_type.value,
                severity=alert.severity.value,
                source_id=alert.source_id,
                confidence=round(alert.confidence, 1),
                description=alert.description,
                created_at=alert.created_at.isoformat(),
            )
            return

        self.stream.write(self.format_line(alert) + "\n")
        self.stream.flush()

    def format_line(self, alert: Alert) -> str:
        """
        Render the simple one-line form of an alert.

        Args:
            alert: The alert to render.

        Returns:
            str: The line, coloured if use_colors is set.
        """
        label = f"[{alert.severity.value.upper()}]"
        if self.use_colors:
            label = f"{SEVERITY_COLORS[alert.severity]}{label}{AnsiColors.RESET}"
        return f"{label} {notification_title(alert)}: {alert.description}"


def create_console_channel(
    format: str = "structured",
    use_colors: bool = True,
) -> ConsoleChannel:
    """
    Factory function to create a ConsoleChannel from config strings.

    Args:
        format: "structured" or "simple".
        use_colors: Whether to colour simple output.

    Returns:
        ConsoleChannel: The channel.
    """
    return ConsoleChannel(format=OutputFormat(format), use_colors=use_colors)
