"""
Exception types for the motion alert pipeline.

None of these are fatal to the process. Where each one is handled:

    ShapeMismatch: Caught by the estimator, treated as zero motion.
    AlertNotFound: Raised to the caller of a manager transition.
    InvalidTransition: Raised to the caller, registry unchanged.
    PermissionDenied: Raised to the caller, registry unchanged.
    SinkDeliveryFailure: Recorded and logged by the dispatcher, never raised.

Re-admitting an alert id that is already registered is not an error; the
manager's ``admit`` simply returns False.
"""

from typing import Any, Optional, Tuple


class PipelineError(Exception):
    """Base class for all motion pipeline errors."""


class ShapeMismatch(PipelineError):
    """
    Raised when two pixel buffers cannot be differenced.

    Attributes:
        expected: (width, height, channels) of the reference buffer.
        actual: (width, height, channels) of the other buffer.
    """

    def __init__(
        self,
        expected: Tuple[int, int, int],
        actual: Tuple[int, int, int],
    ) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"pixel buffer shape {actual} does not match {expected}")


class AlertNotFound(PipelineError):
    """Raised when an alert id is not in the registry."""

    def __init__(self, alert_id: str) -> None:
        self.alert_id = alert_id
        super().__init__(f"alert not found: {alert_id}")


class InvalidTransition(PipelineError):
    """
    Raised for a status change the alert state machine does not allow.

    Attributes:
        alert_id: The alert that was targeted.
        current: Status the alert is in.
        target: Status that was requested.
    """

    def __init__(self, alert_id: str, current: Any, target: Any) -> None:
        self.alert_id = alert_id
        self.current = current
        self.target = target
        super().__init__(
            f"alert {alert_id}: cannot move from {_value(current)} to {_value(target)}"
        )


class PermissionDenied(PipelineError):
    """
    Raised when an actor lacks the permission a transition requires.

    Attributes:
        actor_id: Identifier of the refused actor.
        permission: The permission that was required.
        alert_id: The alert that was targeted, if any.
    """

    def __init__(
        self,
        actor_id: str,
        permission: str,
        alert_id: Optional[str] = None,
    ) -> None:
        self.actor_id = actor_id
        self.permission = permission
        self.alert_id = alert_id
        target = f" on alert {alert_id}" if alert_id else ""
        super().__init__(f"actor {actor_id} lacks {permission}{target}")


class SinkDeliveryFailure(PipelineError):
    """
    A notification or sound request that could not be delivered.

    Attributes:
        sink: Name of the channel or sink that failed.
        alert_id: The alert being delivered.
        cause: Original exception raised by the sink.
    """

    def __init__(
        self,
        sink: str,
        alert_id: str,
        cause: Optional[BaseException] = None,
    ) -> None:
        self.sink = sink
        self.alert_id = alert_id
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"delivery to {sink} failed for alert {alert_id}{detail}")


def _value(status: Any) -> str:
    return getattr(status, "value", str(status))
