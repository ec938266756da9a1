"""Typed models decoded from remote GraphQL responses."""

from __future__ import annotations

import msgspec

WEBHOOK_CHANNEL = "webhook"


class ProjectHandle(msgspec.Struct, frozen=True):
    """A project resolved for the duration of one provisioning run."""

    id: str
    name: str


class MemberUser(msgspec.Struct, frozen=True):
    """User behind a workspace membership."""

    id: str
    email: str


class WorkspaceMember(msgspec.Struct, frozen=True):
    """A member of the workspace with its workspace-level role."""

    id: str
    role: str
    user: MemberUser

    @property
    def user_id(self) -> str:
        """Return the member's user id."""
        return self.user.id

    @property
    def email(self) -> str:
        """Return the member's email address."""
        return self.user.email


class ProjectMembership(msgspec.Struct, frozen=True):
    """Membership returned after granting a project role."""

    id: str
    role: str
    email: str | None = None


class NotificationChannel(msgspec.Struct, frozen=True, rename="camel"):
    """Delivery channel of a notification subscription."""

    type: str
    webhook_url: str | None = None

    def is_webhook_to(self, url: str) -> bool:
        """Return whether this is a webhook channel posting to ``url``."""
        return self.type == WEBHOOK_CHANNEL and self.webhook_url == url


class SubscriptionDescriptor(msgspec.Struct, frozen=True):
    """A notification subscription registered on the remote platform."""

    id: str
    event_types: frozenset[str] = msgspec.field(name="eventTypes")
    channels: tuple[NotificationChannel, ...] = msgspec.field(
        name="channelConfigs", default=()
    )

    def matches(self, event_type: str, callback_url: str) -> bool:
        """Return whether this subscription delivers ``event_type`` to the URL."""
        return event_type in self.event_types and any(
            channel.is_webhook_to(callback_url) for channel in self.channels
        )


__all__ = [
    "WEBHOOK_CHANNEL",
    "MemberUser",
    "NotificationChannel",
    "ProjectHandle",
    "ProjectMembership",
    "SubscriptionDescriptor",
    "WorkspaceMember",
]
