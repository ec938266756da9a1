"""Inbound webhook event model."""

from __future__ import annotations

import msgspec

MEMBER_JOINED_EVENT = "WorkspaceMember.joined"


class InboundEvent(msgspec.Struct, frozen=True, kw_only=True):
    """A validated workspace event, consumed once by the provisioner.

    Attributes
    ----------
    event_type
        Platform event type, such as ``WorkspaceMember.joined``.
    actor_id
        User id of the member the event is about.
    actor_email
        Email address of that member.
    workspace_id
        Workspace the event originated from.

    The remaining attributes are informational and ignored by provisioning.

    """

    event_type: str
    actor_id: str
    actor_email: str
    workspace_id: str
    actor_role: str | None = None
    workspace_name: str | None = None
    severity: str | None = None
    timestamp: str | None = None

    @property
    def is_member_joined(self) -> bool:
        """Return whether this event should trigger provisioning."""
        return self.event_type == MEMBER_JOINED_EVENT


__all__ = ["MEMBER_JOINED_EVENT", "InboundEvent"]
