"""
Actor model for permission-gated alert operations.

An Actor is the identity an operator's session hands to the lifecycle
manager. Session management itself lives outside this package.
"""

from typing import FrozenSet

from pydantic import BaseModel, Field


class Actor(BaseModel):
    """
    Identity performing an alert operation.

    Attributes:
        actor_id: User identifier from the session layer.
        role: Role name resolved by the authorizer (e.g. "manager").
        permissions: Extra permissions granted directly to this actor.

    Example:
        >>> actor = Actor(actor_id="u-17", role="manager")
        >>> actor = Actor(actor_id="svc", role="operator", permissions={"dismiss_alerts"})
    """

    model_config = {"frozen": True, "extra": "forbid"}

    actor_id: str = Field(
        ...,
        description="User identifier",
        min_length=1,
    )
    role: str = Field(
        default="operator",
        description="Role name",
    )
    permissions: FrozenSet[str] = Field(
        default_factory=frozenset,
        description="Permissions granted directly to this actor",
    )
