"""
Motion monitor: the pipeline's input ports.

MotionMonitor wires the estimator, gate, history, factory and lifecycle
manager together behind the calls a frame sampler and a connection watcher
make. It holds the previous buffer of every source and the once-per-
disconnection state for connection-lost alerts.

Flow per tick:
    on_frame -> MotionEstimator -> MotionHistory
                                -> MotionGate -> AlertFactory -> manager.admit

Example:
    >>> monitor = await create_monitor(load_config())
    >>> await monitor.on_frame("CAM-1", buffer)
    >>> await monitor.on_connection_lost("CAM-1")
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional, Set

import structlog

from camwatch.config.models import AppConfig, SettingsUpdate
from camwatch.detection.authorization import Authorizer, RoleAuthorizer
from camwatch.detection.dispatcher import SoundSink, create_dispatcher
from camwatch.detection.estimator import MotionEstimator
from camwatch.detection.factory import AlertFactory
from camwatch.detection.gate import MotionGate
from camwatch.detection.history import MotionHistory
from camwatch.detection.manager import AlertLifecycleManager
from camwatch.models.alerts import Alert
from camwatch.models.frames import PixelBuffer
from camwatch.models.motion import MotionStats

logger = structlog.get_logger(__name__)


class MotionMonitor:
    """
    Turns frame and connection callbacks into admitted alerts.

    State is partitioned by source id. Sources need not be registered
    before their first frame; an unregistered source is named by its id.

    Attributes:
        manager: Lifecycle manager receiving created alerts.
        estimator: Frame differencing.
        gate: Threshold and cooldown.
        history: Rolling statistics.
        factory: Alert creation.
    """

    def __init__(
        self,
        manager: AlertLifecycleManager,
        estimator: Optional[MotionEstimator] = None,
        gate: Optional[MotionGate] = None,
        history: Optional[MotionHistory] = None,
        factory: Optional[AlertFactory] = None,
    ) -> None:
        self.manager = manager
        self.estimator = estimator if estimator is not None else MotionEstimator()
        self.gate = gate if gate is not None else MotionGate()
        self.history = history if history is not None else MotionHistory()
        self.factory = factory if factory is not None else AlertFactory()

        self._names: Dict[str, str] = {}
        self._previous: Dict[str, PixelBuffer] = {}
        self._disconnected: Set[str] = set()

    # =========================================================================
    # Sources
    # =========================================================================

    def register_source(self, source_id: str, name: Optional[str] = None) -> None:
        """
        Register a source and its display name.

        Args:
            source_id: The source identifier.
            name: Display name; defaults to the id.
        """
        self._names[source_id] = name or source_id
        logger.info("source_registered", source_id=source_id, name=self._names[source_id])

    def source_name(self, source_id: str) -> str:
        """Display name of a source, or its id if unregistered."""
        return self._names.get(source_id, source_id)

    @property
    def sources(self) -> List[str]:
        """Registered source ids."""
        return list(self._names)

    def is_connected(self, source_id: str) -> bool:
        """Check whether a connection loss is outstanding for the source."""
        return source_id not in self._disconnected

    # =========================================================================
    # Ports
    # =========================================================================

    async def on_frame(
        self,
        source_id: str,
        buffer: PixelBuffer,
        captured_at: Optional[datetime] = None,
    ) -> Optional[Alert]:
        """
        Process one sampled frame.

        The first frame of a source only primes the previous buffer.

        Args:
            source_id: The source the frame came from.
            buffer: The sampled frame.
            captured_at: Capture time (defaults to now, UTC). A naive value
                is taken as UTC.

        Returns:
            Optional[Alert]: The alert admitted for this tick, if any.
        """
        if captured_at is None:
            captured_at = datetime.now(timezone.utc)
        elif captured_at.tzinfo is None:
            captured_at = captured_at.replace(tzinfo=timezone.utc)

        previous = self._previous.get(source_id)
        self._previous[source_id] = buffer

        if previous is None:
            logger.debug("source_primed", source_id=source_id)
            return None

        try:
            reading = self.estimator.estimate(previous, buffer, captured_at)
        except Exception as e:
            logger.error(
                "motion_estimation_failed",
                source_id=source_id,
                error=str(e),
            )
            return None

        try:
            self.history.record(source_id, reading, self.gate.threshold)

            event = self.gate.observe(source_id, reading)
            if event is None:
                return None

            alert = self.factory.create(event, source_name=self.source_name(source_id))
            await self.manager.admit(alert)
        except Exception as e:
            logger.error(
                "motion_tick_failed",
                source_id=source_id,
                error=str(e),
            )
            return None

        return alert

    async def on_connection_lost(
        self,
        source_id: str,
        timestamp: Optional[datetime] = None,
    ) -> Optional[Alert]:
        """
        Report that a source stopped delivering frames.

        Bypasses the gate. Reported once per disconnection; repeated calls
        before on_connection_restored return None.

        Args:
            source_id: The source that went offline.
            timestamp: Detection time (defaults to now, UTC).

        Returns:
            Optional[Alert]: The connection-lost alert, or None if already
                reported.
        """
        if source_id in self._disconnected:
            logger.debug("connection_loss_already_reported", source_id=source_id)
            return None

        self._disconnected.add(source_id)
        alert = self.factory.create_connection_lost(
            source_id,
            self.source_name(source_id),
            timestamp=timestamp,
        )

        logger.warning("source_connection_lost", source_id=source_id, alert_id=alert.alert_id)
        await self.manager.admit(alert)
        return alert

    def on_connection_restored(self, source_id: str) -> None:
        """
        Report that a source is delivering frames again.

        Re-arms the connection-lost report and starts the source fresh: the
        next frame primes, the cooldown and history are cleared.

        Args:
            source_id: The source that came back.
        """
        was_disconnected = source_id in self._disconnected
        self._disconnected.discard(source_id)
        self._previous.pop(source_id, None)
        self.gate.reset(source_id)
        self.history.reset(source_id)

        logger.info(
            "source_connection_restored",
            source_id=source_id,
            was_disconnected=was_disconnected,
        )

    # =========================================================================
    # Settings and statistics
    # =========================================================================

    def apply_settings(
        self,
        threshold: Optional[float] = None,
        sensitivity_multiplier: Optional[float] = None,
        cooldown_ms: Optional[int] = None,
        noise_floor: Optional[int] = None,
        sound_enabled: Optional[bool] = None,
        notifications_enabled: Optional[bool] = None,
        sound_volume: Optional[float] = None,
    ) -> None:
        """
        Apply a runtime settings change.

        The whole change is validated first; an out-of-range value rejects
        it without applying anything.

        Raises:
            pydantic.ValidationError: If any value is out of range.

        Example:
            >>> monitor.apply_settings(threshold=45, sound_enabled=False)
        """
        update = SettingsUpdate(
            threshold=threshold,
            sensitivity_multiplier=sensitivity_multiplier,
            cooldown_ms=cooldown_ms,
            noise_floor=noise_floor,
            sound_enabled=sound_enabled,
            notifications_enabled=notifications_enabled,
            sound_volume=sound_volume,
        )

        self.gate.configure(threshold=update.threshold, cooldown_ms=update.cooldown_ms)
        self.estimator.configure(
            sensitivity_multiplier=update.sensitivity_multiplier,
            noise_floor=update.noise_floor,
        )

        dispatcher = self.manager.dispatcher
        if dispatcher is not None:
            if update.sound_enabled is not None:
                dispatcher.set_sound_enabled(update.sound_enabled)
            if update.notifications_enabled is not None:
                dispatcher.set_notifications_enabled(update.notifications_enabled)
            if update.sound_volume is not None:
                dispatcher.set_volume(update.sound_volume)

        logger.info(
            "settings_applied",
            **update.model_dump(exclude_none=True),
        )

    def motion_stats(self, source_id: str) -> MotionStats:
        """Rolling motion statistics for one source."""
        return self.history.stats(source_id)

    async def close(self) -> None:
        """Release channel resources."""
        if self.manager.dispatcher is not None:
            await self.manager.dispatcher.close()


async def create_monitor(
    config: AppConfig,
    sound_sink: Optional[SoundSink] = None,
    authorizer: Optional[Authorizer] = None,
) -> MotionMonitor:
    """
    Factory function to build a fully wired MotionMonitor from configuration.

    Args:
        config: Loaded application configuration.
        sound_sink: Sound sink; defaults to LogSoundSink.
        authorizer: Permission checker; defaults to a RoleAuthorizer over
            the configured role table.

    Returns:
        MotionMonitor: Monitor with every enabled source registered.

    Example:
        >>> monitor = await create_monitor(load_config("config"))
        >>> monitor.sources
        ['CAM-1', 'CAM-2']
    """
    alerts = config.alerts
    console = alerts.get_channel("console")
    webhook = alerts.get_channel("webhook")

    dispatcher = await create_dispatcher(
        console_format=console.format if console is not None else "structured",
        console_colors=console.use_colors if console is not None else True,
        console_enabled=console.enabled if console is not None else True,
        webhook_url=webhook.webhook_url if webhook is not None else None,
        webhook_enabled=webhook.enabled if webhook is not None else False,
        webhook_timeout_seconds=webhook.timeout_seconds if webhook is not None else 5,
        severity_channels=dict(alerts.severity_routing) if alerts.severity_routing else None,
        sound_sink=sound_sink,
        sound_enabled=alerts.notifications.sound_enabled,
        notifications_enabled=alerts.notifications.notifications_enabled,
        volume=alerts.notifications.sound_volume,
    )
    if authorizer is None:
        authorizer = RoleAuthorizer(alerts.role_permissions)

    detection = config.detection
    monitor = MotionMonitor(
        manager=AlertLifecycleManager(dispatcher=dispatcher, authorizer=authorizer),
        estimator=MotionEstimator(
            sensitivity_multiplier=detection.sensitivity_multiplier,
            noise_floor=detection.noise_floor,
        ),
        gate=MotionGate(
            threshold=detection.threshold,
            cooldown_ms=detection.cooldown_ms,
        ),
        history=MotionHistory(window_size=detection.history_size),
    )

    for source in config.get_enabled_sources():
        monitor.register_source(source.id, source.name)

    logger.info(
        "motion_monitor_created",
        sources=monitor.sources,
        threshold=detection.threshold,
        cooldown_ms=detection.cooldown_ms,
    )
    return monitor
