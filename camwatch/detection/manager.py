"""
Alert lifecycle manager.

This module provides the AlertLifecycleManager class which owns the alert
registry: admission, the status state machine, permission checks and the
read-only query surface the dashboard renders from.

Key Features:
    - Idempotent admission by alert id
    - Enforces new -> acknowledged -> investigating -> dismissed
    - Permission-gated acknowledge and dismiss
    - Bulk transitions that never abort on a single failure
    - Side effects delegated to an AlertDispatcher, fired exactly once
    - Subscriber hooks for admitted and changed alerts

Example:
    >>> manager = await create_alert_manager(dispatcher=dispatcher)
    >>> await manager.admit(alert)
    True
    >>> await manager.transition(alert.alert_id, AlertStatus.ACKNOWLEDGED, actor)
"""

import asyncio
import inspect
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import structlog

from camwatch.detection.authorization import (
    DISMISS_ALERTS,
    Authorizer,
    RoleAuthorizer,
    required_permission,
)
from camwatch.detection.dispatcher import AlertDispatcher
from camwatch.errors import (
    AlertNotFound,
    InvalidTransition,
    PermissionDenied,
    PipelineError,
)
from camwatch.models.actors import Actor
from camwatch.models.alerts import (
    Alert,
    AlertCounts,
    AlertSeverity,
    AlertStatus,
    AlertType,
    TransitionResult,
)

logger = structlog.get_logger(__name__)


# Callbacks may be plain functions or coroutine functions.
AdmittedCallback = Callable[[Alert], Any]
ChangedCallback = Callable[[Alert, AlertStatus], Any]


class AlertLifecycleManager:
    """
    Owns the alert registry and its state machine.

    The registry is an insertion-ordered dict keyed by alert id. A status
    change stores a new frozen copy under the same key, so insertion order
    (and therefore the most-recent-first view) is never disturbed. Alerts
    are never removed.

    Attributes:
        dispatcher: Performs notification and sound side effects on admit.
        authorizer: Answers permission checks for gated transitions.
        _alerts: Registry of alert id to current alert.
        _lock: Guards id checks, insertion and status replacement.

    Example:
        >>> manager = AlertLifecycleManager(dispatcher=dispatcher)
        >>> await manager.admit(alert)
        True
        >>> await manager.admit(alert)
        False
        >>> manager.list_alerts(status=AlertStatus.NEW)
        [Alert(...)]
    """

    def __init__(
        self,
        dispatcher: Optional[AlertDispatcher] = None,
        authorizer: Optional[Authorizer] = None,
    ) -> None:
        """
        Initialize the manager.

        Args:
            dispatcher: Side-effect dispatcher; None disables side effects.
            authorizer: Permission checker; defaults to RoleAuthorizer().
        """
        self.dispatcher = dispatcher
        self.authorizer: Authorizer = authorizer if authorizer is not None else RoleAuthorizer()

        self._alerts: Dict[str, Alert] = {}
        self._lock = asyncio.Lock()
        self._admitted_callbacks: List[AdmittedCallback] = []
        self._changed_callbacks: List[ChangedCallback] = []

        logger.info(
            "alert_lifecycle_manager_initialized",
            dispatcher=dispatcher is not None,
            authorizer=type(self.authorizer).__name__,
        )

    # =========================================================================
    # Admission
    # =========================================================================

    async def admit(self, alert: Alert) -> bool:
        """
        Admit a newly created alert.

        Side effects and admitted subscribers run once, after the registry
        lock is released. A repeated id is ignored.

        Args:
            alert: Alert produced by the AlertFactory.

        Returns:
            bool: True if admitted, False if the id was already registered.
        """
        async with self._lock:
            if alert.alert_id in self._alerts:
                logger.info(
                    "alert_duplicate_ignored",
                    alert_id=alert.alert_id,
                )
                return False
            self._alerts[alert.alert_id] = alert

        logger.info(
            "alert_admitted",
            alert_id=alert.alert_id,
            alert_type=alert.alert_type.value,
            source_id=alert.source_id,
            severity=alert.severity.value,
            confidence=round(alert.confidence, 2),
        )

        if self.dispatcher is not None:
            await self.dispatcher.dispatch(alert)

        await self._run_callbacks("admitted", self._admitted_callbacks, alert)
        return True

    # =========================================================================
    # Transitions
    # =========================================================================

    async def transition(
        self,
        alert_id: str,
        target: AlertStatus,
        actor: Actor,
        timestamp: Optional[datetime] = None,
    ) -> Alert:
        """
        Move one alert to a new status.

        Checks run in order: existence, state machine, permission. Any
        failure leaves the registry unchanged.

        Args:
            alert_id: The alert to change.
            target: Requested status.
            actor: Who is asking.
            timestamp: Change time (defaults to now, UTC).

        Returns:
            Alert: The updated alert.

        Raises:
            AlertNotFound: If alert_id is not registered.
            PermissionDenied: If actor lacks the permission target requires.
            InvalidTransition: If the state machine has no such edge.

        Example:
            >>> updated = await manager.transition(
            ...     "CAM-1-1737892800000-1",
            ...     AlertStatus.INVESTIGATING,
            ...     Actor(actor_id="u-2"),
            ... )
            >>> updated.status
            <AlertStatus.INVESTIGATING: 'investigating'>
        """
        if timestamp is None:
            timestamp = datetime.now(timezone.utc)

        async with self._lock:
            updated, previous = self._apply_transition(alert_id, target, actor, timestamp)

        await self._run_callbacks("changed", self._changed_callbacks, updated, previous)
        return updated

    async def bulk_transition(
        self,
        alert_ids: Iterable[str],
        target: AlertStatus,
        actor: Actor,
        timestamp: Optional[datetime] = None,
    ) -> Dict[str, TransitionResult]:
        """
        Apply the same transition to many alerts independently.

        Args:
            alert_ids: Alerts to change.
            target: Requested status.
            actor: Who is asking.
            timestamp: Change time (defaults to now, UTC).

        Returns:
            Dict[str, TransitionResult]: Outcome per id, in request order.
                A repeated id is applied once.
        """
        if timestamp is None:
            timestamp = datetime.now(timezone.utc)

        results: Dict[str, TransitionResult] = {}
        changed: List[Tuple[Alert, AlertStatus]] = []

        async with self._lock:
            for alert_id in dict.fromkeys(alert_ids):
                try:
                    updated, previous = self._apply_transition(
                        alert_id, target, actor, timestamp
                    )
                except PipelineError as e:
                    current = self._alerts.get(alert_id)
                    results[alert_id] = TransitionResult(
                        alert_id=alert_id,
                        success=False,
                        status=current.status if current is not None else None,
                        error=type(e).__name__,
                        message=str(e),
                    )
                    continue

                changed.append((updated, previous))
                results[alert_id] = TransitionResult(
                    alert_id=alert_id,
                    success=True,
                    status=updated.status,
                )

        logger.info(
            "bulk_transition_complete",
            target=target.value,
            requested=len(results),
            succeeded=len(changed),
            actor_id=actor.actor_id,
        )

        for updated, previous in changed:
            await self._run_callbacks("changed", self._changed_callbacks, updated, previous)

        return results

    async def clear_all(
        self,
        actor: Optional[Actor] = None,
        timestamp: Optional[datetime] = None,
    ) -> List[Alert]:
        """
        Dismiss every alert that is not already dismissed.

        Records are kept; only their status changes.

        Args:
            actor: Who is asking. None means a system action with no
                permission check.
            timestamp: Change time (defaults to now, UTC).

        Returns:
            List[Alert]: The alerts that were dismissed by this call.

        Raises:
            PermissionDenied: If actor lacks dismiss_alerts.
        """
        if actor is not None:
            self._check_permission(actor, DISMISS_ALERTS)

        if timestamp is None:
            timestamp = datetime.now(timezone.utc)

        changed: List[Tuple[Alert, AlertStatus]] = []

        async with self._lock:
            for alert_id, alert in self._alerts.items():
                if alert.status.can_transition_to(AlertStatus.DISMISSED):
                    updated = alert.with_status(AlertStatus.DISMISSED, timestamp)
                    self._alerts[alert_id] = updated
                    changed.append((updated, alert.status))

        logger.info(
            "alerts_cleared",
            count=len(changed),
            actor_id=actor.actor_id if actor is not None else None,
        )

        for updated, previous in changed:
            await self._run_callbacks("changed", self._changed_callbacks, updated, previous)

        return [updated for updated, _ in changed]

    def _apply_transition(
        self,
        alert_id: str,
        target: AlertStatus,
        actor: Actor,
        timestamp: datetime,
    ) -> Tuple[Alert, AlertStatus]:
        """Validate and store one transition. Caller holds the lock."""
        current = self._alerts.get(alert_id)
        if current is None:
            raise AlertNotFound(alert_id)

        if not current.status.can_transition_to(target):
            logger.warning(
                "invalid_transition_refused",
                alert_id=alert_id,
                current=current.status.value,
                target=target.value,
            )
            raise InvalidTransition(alert_id, current.status, target)

        permission = required_permission(target)
        if permission is not None:
            self._check_permission(actor, permission, alert_id)

        updated = current.with_status(target, timestamp)
        self._alerts[alert_id] = updated

        logger.info(
            "alert_status_changed",
            alert_id=alert_id,
            previous=current.status.value,
            status=target.value,
            actor_id=actor.actor_id,
        )
        return updated, current.status

    def _check_permission(
        self,
        actor: Actor,
        permission: str,
        alert_id: Optional[str] = None,
    ) -> None:
        """Raise PermissionDenied unless actor holds permission."""
        if self.authorizer.is_allowed(actor, permission):
            return

        logger.warning(
            "permission_denied",
            actor_id=actor.actor_id,
            role=actor.role,
            permission=permission,
            alert_id=alert_id,
        )
        raise PermissionDenied(actor.actor_id, permission, alert_id)

    # =========================================================================
    # Subscriptions
    # =========================================================================

    def subscribe_admitted(self, callback: AdmittedCallback) -> None:
        """
        Register a callback for newly admitted alerts.

        Args:
            callback: Called with the alert; may be a coroutine function.
        """
        self._admitted_callbacks.append(callback)

    def subscribe_changed(self, callback: ChangedCallback) -> None:
        """
        Register a callback for status changes.

        Args:
            callback: Called with (alert, previous_status); may be a
                coroutine function.
        """
        self._changed_callbacks.append(callback)

    async def _run_callbacks(
        self,
        hook: str,
        callbacks: List[Callable[..., Any]],
        *args: Any,
    ) -> None:
        """Invoke subscribers, logging and continuing past failures."""
        for callback in list(callbacks):
            try:
                result = callback(*args)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(
                    "alert_subscriber_failed",
                    hook=hook,
                    callback=getattr(callback, "__name__", repr(callback)),
                    error=str(e),
                )

    # =========================================================================
    # Queries
    # =========================================================================

    def get(self, alert_id: str) -> Optional[Alert]:
        """Get the current copy of an alert, or None if unknown."""
        return self._alerts.get(alert_id)

    def list_alerts(
        self,
        status: Optional[AlertStatus] = None,
        severity: Optional[AlertSeverity] = None,
        source_id: Optional[str] = None,
        alert_type: Optional[AlertType] = None,
        search: Optional[str] = None,
    ) -> List[Alert]:
        """
        List alerts, most recent first.

        Every filter is optional; given filters are combined with AND.

        Args:
            status: Only alerts in this status.
            severity: Only alerts of this severity.
            source_id: Only alerts from this source.
            alert_type: Only alerts of this type.
            search: Case-insensitive text matched against description and
                source name.

        Returns:
            List[Alert]: Matching alerts.

        Example:
            >>> manager.list_alerts(severity=AlertSeverity.CRITICAL, search="front")
        """
        results = []
        for alert in reversed(list(self._alerts.values())):
            if status is not None and alert.status != status:
                continue
            if severity is not None and alert.severity != severity:
                continue
            if source_id is not None and alert.source_id != source_id:
                continue
            if alert_type is not None and alert.alert_type != alert_type:
                continue
            if search and not alert.matches_text(search):
                continue
            results.append(alert)
        return results

    def count_by_status(self) -> Dict[AlertStatus, int]:
        """Count alerts per status; every status is present."""
        counts = {status: 0 for status in AlertStatus}
        for alert in self._alerts.values():
            counts[alert.status] += 1
        return counts

    def count_by_severity(self) -> Dict[AlertSeverity, int]:
        """Count alerts per severity; every severity is present."""
        counts = {severity: 0 for severity in AlertSeverity}
        for alert in self._alerts.values():
            counts[alert.severity] += 1
        return counts

    def counts(self) -> AlertCounts:
        """Totals for the dashboard summary cards."""
        by_status = self.count_by_status()
        return AlertCounts(
            total=len(self._alerts),
            new=by_status[AlertStatus.NEW],
            acknowledged=by_status[AlertStatus.ACKNOWLEDGED],
            investigating=by_status[AlertStatus.INVESTIGATING],
            dismissed=by_status[AlertStatus.DISMISSED],
        )

    def __len__(self) -> int:
        return len(self._alerts)

    def __contains__(self, alert_id: object) -> bool:
        return alert_id in self._alerts


async def create_alert_manager(
    dispatcher: Optional[AlertDispatcher] = None,
    authorizer: Optional[Authorizer] = None,
) -> AlertLifecycleManager:
    """
    Factory function to create an AlertLifecycleManager.

    Args:
        dispatcher: Side-effect dispatcher.
        authorizer: Permission checker.

    Returns:
        AlertLifecycleManager: A new manager instance.

    Example:
        >>> manager = await create_alert_manager(
        ...     dispatcher=await create_dispatcher(),
        ... )
    """
    return AlertLifecycleManager(
        dispatcher=dispatcher,
        authorizer=authorizer,
    )
