"""
Permission checks for alert status changes.

The lifecycle manager does not know how roles are administered. It asks an
Authorizer whether an actor holds a named permission and refuses the
transition when the answer is no.

Permissions:
    acknowledge_alerts: Required to move an alert to acknowledged.
    dismiss_alerts: Required to move an alert to dismissed.
    Moving to investigating requires no permission.

Example:
    >>> authorizer = RoleAuthorizer()
    >>> authorizer.is_allowed(Actor(actor_id="u1", role="manager"), ACKNOWLEDGE_ALERTS)
    True
    >>> authorizer.is_allowed(Actor(actor_id="u2", role="operator"), DISMISS_ALERTS)
    False
"""

from typing import Dict, Iterable, List, Mapping, Optional, Protocol, Set

import structlog

from camwatch.models.actors import Actor
from camwatch.models.alerts import AlertStatus

logger = structlog.get_logger(__name__)


ACKNOWLEDGE_ALERTS = "acknowledge_alerts"
DISMISS_ALERTS = "dismiss_alerts"

# Permission required to enter each status. None means ungated.
REQUIRED_PERMISSIONS: Dict[AlertStatus, Optional[str]] = {
    AlertStatus.NEW: None,
    AlertStatus.ACKNOWLEDGED: ACKNOWLEDGE_ALERTS,
    AlertStatus.INVESTIGATING: None,
    AlertStatus.DISMISSED: DISMISS_ALERTS,
}

DEFAULT_ROLE_PERMISSIONS: Dict[str, List[str]] = {
    "manager": [
        "view_dashboard",
        "manage_cameras",
        ACKNOWLEDGE_ALERTS,
        DISMISS_ALERTS,
        "view_sessions",
        "revoke_sessions",
        "access_logs",
        "system_settings",
    ],
    "operator": [
        "view_dashboard",
        "view_cameras",
        "forward_alerts",
    ],
}


def required_permission(target: AlertStatus) -> Optional[str]:
    """Return the permission needed to move an alert into target, if any."""
    return REQUIRED_PERMISSIONS.get(target)


class Authorizer(Protocol):
    """
    Protocol for permission checks.

    Implementations typically wrap the dashboard's session/role service.
    """

    def is_allowed(self, actor: Actor, permission: str) -> bool:
        """Check whether actor holds permission."""
        ...


class RoleAuthorizer:
    """
    Authorizer backed by a static role to permissions table.

    An actor is allowed if their role grants the permission or the
    permission is listed on the actor itself. Unknown roles grant nothing.

    Attributes:
        role_permissions: Mapping of role name to granted permissions.
    """

    def __init__(
        self,
        role_permissions: Optional[Mapping[str, Iterable[str]]] = None,
    ) -> None:
        """
        Initialize the authorizer.

        Args:
            role_permissions: Role table; defaults to DEFAULT_ROLE_PERMISSIONS.
        """
        table = DEFAULT_ROLE_PERMISSIONS if role_permissions is None else role_permissions
        self.role_permissions: Dict[str, Set[str]] = {
            role: set(perms) for role, perms in table.items()
        }

    def is_allowed(self, actor: Actor, permission: str) -> bool:
        """
        Check whether actor holds permission.

        Args:
            actor: The acting identity.
            permission: Permission name.

        Returns:
            bool: True if granted by role or directly.
        """
        if permission in actor.permissions:
            return True

        granted = self.role_permissions.get(actor.role)
        if granted is None:
            logger.warning(
                "unknown_actor_role",
                actor_id=actor.actor_id,
                role=actor.role,
            )
            return False

        return permission in granted
