"""
Configuration management for the motion alert pipeline.

This module handles loading and validating configuration from YAML files.
All configuration values are validated using Pydantic models to ensure
type safety and catch configuration errors early.

Configuration is loaded from YAML files in the config/ directory:
    - sources.yaml: Camera definitions
    - detection.yaml: Threshold, sensitivity, cooldown, noise floor
    - alerts.yaml: Notification toggles, channels, routing, roles
    - features.yaml: Logging settings (optional)

Environment variables override:
    - LOG_LEVEL: Application log level
    - ALERT_WEBHOOK_URL: Webhook channel URL

Example:
    >>> from camwatch.config import load_config
    >>> config = load_config()
    >>> config.detection.cooldown_ms
    5000

Modules:
    loader: Configuration file loading utilities
    models: Pydantic models for configuration validation
"""

from camwatch.config.loader import ConfigLoadError, ConfigLoader, load_config
from camwatch.config.models import (
    # Enums
    LogFormat,
    LogLevel,
    # Source config
    SourceConfig,
    # Detection config
    DetectionSettings,
    SettingsUpdate,
    # Alert config
    AlertsConfig,
    ChannelConfig,
    NotificationSettings,
    # Logging config
    LoggingConfig,
    # Root config
    AppConfig,
)

__all__: list[str] = [
    # Loader
    "load_config",
    "ConfigLoader",
    "ConfigLoadError",
    # Enums
    "LogFormat",
    "LogLevel",
    # Source config
    "SourceConfig",
    # Detection config
    "DetectionSettings",
    "SettingsUpdate",
    # Alert config
    "NotificationSettings",
    "ChannelConfig",
    "AlertsConfig",
    # Logging config
    "LoggingConfig",
    # Root config
    "AppConfig",
]
