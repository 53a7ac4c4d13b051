"""
Pydantic models for application configuration.

This module defines all configuration models that are validated when loading
YAML configuration files. The models ensure type safety and provide sensible
defaults for optional settings.

Configuration files:
    - config/sources.yaml: Camera definitions
    - config/detection.yaml: Motion detection tuning
    - config/alerts.yaml: Notification settings, channels, routing and roles
    - config/features.yaml: Logging settings (optional)

Example:
    >>> from camwatch.config.models import AppConfig
    >>> config = AppConfig(...)
    >>> config.detection.threshold
    30.0
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from camwatch.models.alerts import AlertSeverity


# =============================================================================
# ENUMS
# =============================================================================


class LogFormat(str, Enum):
    """Logging format options."""

    JSON = "json"
    TEXT = "text"


class LogLevel(str, Enum):
    """Logging level options."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


# =============================================================================
# SOURCE CONFIGURATION
# =============================================================================


class SourceConfig(BaseModel):
    """
    Configuration for one camera.

    Example:
        >>> source = SourceConfig(id="CAM-1", name="Front Door", location="Lobby")
    """

    model_config = {"frozen": True, "extra": "forbid"}

    id: str = Field(
        ...,
        description="Source identifier (e.g., CAM-1)",
        min_length=1,
    )
    name: str = Field(
        ...,
        description="Display name used in notifications",
        min_length=1,
    )
    location: Optional[str] = Field(
        default=None,
        description="Where the camera is mounted",
    )
    enabled: bool = Field(
        default=True,
        description="Whether frames from this source are processed",
    )


# =============================================================================
# DETECTION CONFIGURATION
# =============================================================================


class DetectionSettings(BaseModel):
    """
    Motion detection tuning.

    Ranges match the dashboard settings panel.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    threshold: float = Field(
        default=30.0,
        description="Intensity a reading must exceed to raise an event",
        ge=10.0,
        le=100.0,
    )
    sensitivity_multiplier: float = Field(
        default=1.0,
        description="Scale from mean channel delta to intensity",
        ge=0.1,
        le=2.0,
    )
    cooldown_ms: int = Field(
        default=5000,
        description="Minimum milliseconds between events per source",
        ge=0,
    )
    noise_floor: int = Field(
        default=30,
        description="Per-pixel summed delta below which a pixel is unchanged",
        ge=0,
        le=765,
    )
    history_size: int = Field(
        default=10,
        description="Readings kept per source for statistics",
        ge=1,
    )


class SettingsUpdate(BaseModel):
    """
    Partial runtime settings change from the settings panel.

    Every field is optional; None means keep the current value. Validating
    the whole update up front means a bad value rejects the update before
    anything is applied.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    threshold: Optional[float] = Field(default=None, ge=10.0, le=100.0)
    sensitivity_multiplier: Optional[float] = Field(default=None, ge=0.1, le=2.0)
    cooldown_ms: Optional[int] = Field(default=None, ge=0)
    noise_floor: Optional[int] = Field(default=None, ge=0, le=765)
    sound_enabled: Optional[bool] = None
    notifications_enabled: Optional[bool] = None
    sound_volume: Optional[float] = Field(default=None, ge=0.0, le=1.0)


# =============================================================================
# ALERT CONFIGURATION
# =============================================================================


class NotificationSettings(BaseModel):
    """Sound and notification toggles."""

    model_config = {"frozen": True, "extra": "forbid"}

    sound_enabled: bool = Field(
        default=True,
        description="Play a sound cue on admission",
    )
    notifications_enabled: bool = Field(
        default=True,
        description="Send a notification on admission",
    )
    sound_volume: float = Field(
        default=0.7,
        description="Cue volume",
        ge=0.0,
        le=1.0,
    )


class ChannelConfig(BaseModel):
    """Configuration for a notification channel."""

    model_config = {"frozen": True, "extra": "forbid"}

    enabled: bool = Field(
        default=True,
        description="Whether this channel is enabled",
    )
    format: str = Field(
        default="structured",
        description="Output format (structured, simple)",
    )
    use_colors: bool = Field(
        default=True,
        description="ANSI colours for simple console output",
    )
    webhook_url: Optional[str] = Field(
        default=None,
        description="Webhook URL for external channels",
    )
    timeout_seconds: int = Field(
        default=5,
        description="HTTP timeout for webhook delivery",
        ge=1,
    )

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Only the console formats are accepted."""
        if v not in ("structured", "simple"):
            raise ValueError(f"format must be 'structured' or 'simple', got {v!r}")
        return v


class AlertsConfig(BaseModel):
    """Complete alerts configuration."""

    model_config = {"frozen": True, "extra": "forbid"}

    notifications: NotificationSettings = Field(
        default_factory=NotificationSettings,
        description="Sound and notification toggles",
    )
    channels: Dict[str, ChannelConfig] = Field(
        default_factory=dict,
        description="Notification channel configurations",
    )
    severity_routing: Optional[Dict[AlertSeverity, List[str]]] = Field(
        default=None,
        description="Channel names per severity; None uses the defaults",
    )
    role_permissions: Optional[Dict[str, List[str]]] = Field(
        default=None,
        description="Permissions granted per role; None uses the defaults",
    )

    def get_channel(self, name: str) -> Optional[ChannelConfig]:
        """
        Get a channel configuration by name.

        Args:
            name: Channel name (e.g., "webhook").

        Returns:
            Optional[ChannelConfig]: Channel config or None if not configured.
        """
        return self.channels.get(name)


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = {"frozen": True, "extra": "forbid"}

    format: LogFormat = Field(
        default=LogFormat.JSON,
        description="Log output format",
    )
    level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Default log level",
    )


# =============================================================================
# ROOT CONFIGURATION
# =============================================================================


class AppConfig(BaseModel):
    """
    Root application configuration.

    Aggregates all configuration sections into a single validated object.

    Example:
        >>> config = AppConfig(sources=[SourceConfig(id="CAM-1", name="Front Door")])
        >>> config.get_source("CAM-1").name
        'Front Door'
    """

    model_config = {"frozen": True, "extra": "forbid"}

    sources: List[SourceConfig] = Field(
        default_factory=list,
        description="Camera configurations",
    )
    detection: DetectionSettings = Field(
        default_factory=DetectionSettings,
        description="Motion detection settings",
    )
    alerts: AlertsConfig = Field(
        default_factory=AlertsConfig,
        description="Alert configurations",
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration",
    )

    @model_validator(mode="after")
    def validate_config(self) -> "AppConfig":
        """Validate cross-references in configuration."""
        seen = set()
        for source in self.sources:
            if source.id in seen:
                raise ValueError(f"Duplicate source id: {source.id}")
            seen.add(source.id)

        if self.alerts.severity_routing:
            for severity, names in self.alerts.severity_routing.items():
                for name in names:
                    if name not in self.alerts.channels:
                        raise ValueError(
                            f"Severity {severity.value} routes to unknown channel: {name}"
                        )

        return self

    def get_source(self, source_id: str) -> Optional[SourceConfig]:
        """
        Get source configuration by ID.

        Args:
            source_id: Source ID (e.g., "CAM-1")

        Returns:
            Optional[SourceConfig]: Source config or None if not found.
        """
        for source in self.sources:
            if source.id == source_id:
                return source
        return None

    def get_enabled_sources(self) -> List[SourceConfig]:
        """
        Get list of enabled sources.

        Returns:
            List[SourceConfig]: Enabled source configurations.
        """
        return [source for source in self.sources if source.enabled]
