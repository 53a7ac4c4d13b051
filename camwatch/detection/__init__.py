"""
Motion detection and alert lifecycle for the surveillance dashboard.

Components:
    estimator: MotionEstimator for frame differencing
    gate: MotionGate for threshold and cooldown
    history: MotionHistory for rolling per-camera statistics
    factory: AlertFactory for alert creation and severity
    manager: AlertLifecycleManager for the alert registry
    dispatcher: AlertDispatcher for notification and sound routing
    authorization: Authorizer protocol and RoleAuthorizer
    monitor: MotionMonitor wiring the above behind frame callbacks
    channels/: Notification channels (console, webhook) and sound sink

Example:
    >>> from camwatch.detection import (
    ...     AlertLifecycleManager,
    ...     MotionMonitor,
    ... )
    >>>
    >>> manager = AlertLifecycleManager(dispatcher=dispatcher)
    >>> monitor = MotionMonitor(manager)
    >>> monitor.register_source("CAM-1", "Front Door")
    >>> await monitor.on_frame("CAM-1", buffer)
"""

from camwatch.detection.estimator import (
    MotionEstimator,
    DEFAULT_NOISE_FLOOR,
    DEFAULT_SENSITIVITY_MULTIPLIER,
)
from camwatch.detection.gate import (
    MotionGate,
    DEFAULT_COOLDOWN_MS,
    DEFAULT_THRESHOLD,
)
from camwatch.detection.history import MotionHistory
from camwatch.detection.factory import AlertFactory, severity_for_intensity
from camwatch.detection.authorization import (
    Authorizer,
    RoleAuthorizer,
    ACKNOWLEDGE_ALERTS,
    DISMISS_ALERTS,
)
from camwatch.detection.dispatcher import (
    AlertDispatcher,
    NotificationChannel,
    SoundSink,
    create_dispatcher,
    DEFAULT_SEVERITY_CHANNELS,
)
from camwatch.detection.manager import (
    AlertLifecycleManager,
    create_alert_manager,
)
from camwatch.detection.monitor import MotionMonitor, create_monitor

__all__ = [
    # Estimator
    "MotionEstimator",
    "DEFAULT_NOISE_FLOOR",
    "DEFAULT_SENSITIVITY_MULTIPLIER",
    # Gate
    "MotionGate",
    "DEFAULT_COOLDOWN_MS",
    "DEFAULT_THRESHOLD",
    # History
    "MotionHistory",
    # Factory
    "AlertFactory",
    "severity_for_intensity",
    # Authorization
    "Authorizer",
    "RoleAuthorizer",
    "ACKNOWLEDGE_ALERTS",
    "DISMISS_ALERTS",
    # Dispatcher
    "AlertDispatcher",
    "NotificationChannel",
    "SoundSink",
    "create_dispatcher",
    "DEFAULT_SEVERITY_CHANNELS",
    # Manager
    "AlertLifecycleManager",
    "create_alert_manager",
    # Monitor
    "MotionMonitor",
    "create_monitor",
]
