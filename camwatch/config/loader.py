"""
Configuration loader for YAML-based application configuration.

This module provides utilities to load and validate configuration from YAML
files. All configuration is validated using Pydantic models to ensure type
safety and catch configuration errors early.

Configuration files expected:
    - config/sources.yaml: Camera definitions
    - config/detection.yaml: Motion detection tuning
    - config/alerts.yaml: Notification settings, channels, routing and roles
    - config/features.yaml: Logging settings (optional)

Environment variables override:
    - LOG_LEVEL: Application log level
    - ALERT_WEBHOOK_URL: Webhook channel URL

Example:
    >>> from camwatch.config.loader import load_config
    >>> config = load_config("config")
    >>> [source.id for source in config.get_enabled_sources()]
    ['CAM-1', 'CAM-2']
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from camwatch.config.models import (
    AlertsConfig,
    AppConfig,
    ChannelConfig,
    DetectionSettings,
    LoggingConfig,
    LogLevel,
    NotificationSettings,
    SourceConfig,
)

WEBHOOK_CHANNEL = "webhook"


class ConfigLoadError(Exception):
    """
    Raised when configuration loading fails.

    Attributes:
        message: Error message describing what went wrong.
        file_path: Path to the file that caused the error, if applicable.
        cause: Original exception that caused the error, if any.
    """

    def __init__(
        self,
        message: str,
        file_path: Optional[Path] = None,
        cause: Optional[Exception] = None,
    ):
        self.message = message
        self.file_path = file_path
        self.cause = cause
        super().__init__(message)


class ConfigLoader:
    """
    Loads and validates application configuration from YAML files.

    Expects the following directory structure:
        config/
        ├── sources.yaml    - Cameras
        ├── detection.yaml  - Threshold, sensitivity, cooldown
        ├── alerts.yaml     - Notifications, channels, roles
        └── features.yaml   - Logging (optional)

    Example:
        >>> loader = ConfigLoader("config")
        >>> config = loader.load()
        >>> config.detection.cooldown_ms
        5000
    """

    def __init__(self, config_dir: Path | str = "config"):
        """
        Initialize config loader.

        Args:
            config_dir: Path to configuration directory (default: 'config').

        Raises:
            ConfigLoadError: If config directory does not exist.
        """
        self.config_dir = Path(config_dir)
        if not self.config_dir.exists():
            raise ConfigLoadError(
                f"Configuration directory not found: {self.config_dir}",
                file_path=self.config_dir,
            )
        if not self.config_dir.is_dir():
            raise ConfigLoadError(
                f"Configuration path is not a directory: {self.config_dir}",
                file_path=self.config_dir,
            )

    def _load_yaml(self, filename: str, required: bool = True) -> Dict[str, Any]:
        """
        Load a YAML file from the config directory.

        Args:
            filename: Name of YAML file (e.g., 'sources.yaml').
            required: If False, a missing file yields an empty dict.

        Returns:
            Dict containing parsed YAML content.

        Raises:
            ConfigLoadError: If file not found, empty, or invalid YAML.
        """
        file_path = self.config_dir / filename
        if not file_path.exists():
            if not required:
                return {}
            raise ConfigLoadError(
                f"Configuration file not found: {file_path}",
                file_path=file_path,
            )

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
                if data is None:
                    raise ConfigLoadError(
                        f"Configuration file is empty: {file_path}",
                        file_path=file_path,
                    )
                if not isinstance(data, dict):
                    raise ConfigLoadError(
                        f"Configuration file must contain a mapping: {file_path}",
                        file_path=file_path,
                    )
                return data
        except yaml.YAMLError as e:
            raise ConfigLoadError(
                f"Invalid YAML syntax in {file_path}: {e}",
                file_path=file_path,
                cause=e,
            ) from e
        except OSError as e:
            raise ConfigLoadError(
                f"Error reading {file_path}: {e}",
                file_path=file_path,
                cause=e,
            ) from e

    def _load_sources(self) -> List[SourceConfig]:
        """
        Load camera definitions from sources.yaml.

        Returns:
            List of SourceConfig.

        Raises:
            ConfigLoadError: If validation fails or no sources configured.
        """
        data = self._load_yaml("sources.yaml")
        sources: List[SourceConfig] = []

        try:
            for source_data in data.get("sources", []):
                sources.append(
                    SourceConfig(
                        id=source_data["id"],
                        name=source_data.get("name", source_data["id"]),
                        location=source_data.get("location"),
                        enabled=source_data.get("enabled", True),
                    )
                )
        except ValidationError as e:
            raise ConfigLoadError(
                f"Invalid source configuration: {e}",
                file_path=self.config_dir / "sources.yaml",
                cause=e,
            ) from e
        except KeyError as e:
            raise ConfigLoadError(
                f"Missing required field in source configuration: {e}",
                file_path=self.config_dir / "sources.yaml",
                cause=e,
            ) from e

        if not sources:
            raise ConfigLoadError(
                "No sources configured in sources.yaml",
                file_path=self.config_dir / "sources.yaml",
            )

        return sources

    def _load_detection(self) -> DetectionSettings:
        """
        Load detection tuning from detection.yaml.

        Returns:
            DetectionSettings object.

        Raises:
            ConfigLoadError: If validation fails.
        """
        data = self._load_yaml("detection.yaml")

        try:
            return DetectionSettings(**data.get("detection", {}))
        except ValidationError as e:
            raise ConfigLoadError(
                f"Invalid detection configuration: {e}",
                file_path=self.config_dir / "detection.yaml",
                cause=e,
            ) from e

    def _load_alerts(self) -> AlertsConfig:
        """
        Load alert configuration from alerts.yaml.

        ALERT_WEBHOOK_URL, when set, overrides (or creates) the webhook
        channel's URL.

        Returns:
            AlertsConfig object.

        Raises:
            ConfigLoadError: If validation fails.
        """
        data = self._load_yaml("alerts.yaml")

        try:
            notifications = NotificationSettings(**data.get("notifications", {}))

            # Parse channels
            channels: Dict[str, ChannelConfig] = {}
            for channel_name, channel_data in (data.get("channels") or {}).items():
                channels[channel_name] = ChannelConfig(**(channel_data or {}))

            webhook_url = os.getenv("ALERT_WEBHOOK_URL")
            if webhook_url:
                existing = channels.get(WEBHOOK_CHANNEL)
                channels[WEBHOOK_CHANNEL] = (
                    existing.model_copy(update={"webhook_url": webhook_url})
                    if existing is not None
                    else ChannelConfig(webhook_url=webhook_url)
                )

            return AlertsConfig(
                notifications=notifications,
                channels=channels,
                severity_routing=data.get("severity_routing"),
                role_permissions=data.get("role_permissions"),
            )

        except ValidationError as e:
            raise ConfigLoadError(
                f"Invalid alerts configuration: {e}",
                file_path=self.config_dir / "alerts.yaml",
                cause=e,
            ) from e
        except (AttributeError, TypeError) as e:
            raise ConfigLoadError(
                f"Malformed alerts configuration: {e}",
                file_path=self.config_dir / "alerts.yaml",
                cause=e,
            ) from e

    def _load_logging(self) -> LoggingConfig:
        """
        Load logging settings from features.yaml, with LOG_LEVEL applied.

        Environment variables:
            - LOG_LEVEL: Log level, overrides the file

        Returns:
            LoggingConfig object.
        """
        data = self._load_yaml("features.yaml", required=False)
        logging_data = dict(data.get("logging", {}))

        env_level = self._get_log_level()
        if env_level is not None:
            logging_data["level"] = env_level

        try:
            return LoggingConfig(**logging_data)
        except ValidationError as e:
            raise ConfigLoadError(
                f"Invalid logging configuration: {e}",
                file_path=self.config_dir / "features.yaml",
                cause=e,
            ) from e

    def _get_log_level(self) -> Optional[LogLevel]:
        """
        Get log level from environment.

        Returns:
            LogLevel enum value, or None if unset or unrecognised.
        """
        level_str = os.getenv("LOG_LEVEL")
        if not level_str:
            return None
        try:
            return LogLevel(level_str.upper())
        except ValueError:
            return None

    def load(self) -> AppConfig:
        """
        Load and validate all configuration files.

        Returns:
            AppConfig: Validated application configuration.

        Raises:
            ConfigLoadError: If any configuration is invalid or missing.

        Example:
            >>> loader = ConfigLoader("config")
            >>> config = loader.load()
            >>> config.alerts.notifications.sound_volume
            0.7
        """
        try:
            return AppConfig(
                sources=self._load_sources(),
                detection=self._load_detection(),
                alerts=self._load_alerts(),
                logging=self._load_logging(),
            )

        except ConfigLoadError:
            raise
        except ValidationError as e:
            raise ConfigLoadError(
                f"Configuration validation failed: {e}",
                cause=e,
            ) from e
        except Exception as e:
            raise ConfigLoadError(
                f"Unexpected error loading configuration: {e}",
                cause=e,
            ) from e


def load_config(config_dir: Path | str = "config") -> AppConfig:
    """
    Convenience function to load application configuration.

    Args:
        config_dir: Path to configuration directory (default: 'config').

    Returns:
        AppConfig: Validated application configuration.

    Raises:
        ConfigLoadError: If configuration loading fails.

    Example:
        >>> from camwatch.config import load_config
        >>> config = load_config()
        >>> config.detection.threshold
        30.0
    """
    loader = ConfigLoader(config_dir)
    return loader.load()
