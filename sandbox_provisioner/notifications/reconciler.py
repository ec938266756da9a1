"""Reconciliation of the join-event notification subscription.

Ensures exactly one subscription delivers ``WorkspaceMember.joined`` events
to this service's callback URL. The remote API cannot report whether an
existing subscription carries the configured signing secret, so when a
secret is configured every matching subscription is deleted and a single
signed one is created. Surplus matches are always removed.

The delete and create are not transactional: a crash in between leaves no
subscription until the next reconciliation, which runs on every startup.
"""

from __future__ import annotations

import typing as typ

from sandbox_provisioner.provisioning.observability import ProvisioningEventLogger
from sandbox_provisioner.webhooks.models import MEMBER_JOINED_EVENT

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from sandbox_provisioner.config import ProvisionerConfig
    from sandbox_provisioner.remote.models import SubscriptionDescriptor

__all__ = [
    "NotificationReconciler",
    "SubscriptionClient",
    "find_matching_subscriptions",
]


class SubscriptionClient(typ.Protocol):
    """Remote operations used for subscription reconciliation."""

    async def list_subscriptions(
        self, workspace_id: str
    ) -> tuple[SubscriptionDescriptor, ...]:
        """Return the notification subscriptions of a workspace."""
        ...

    async def create_subscription(
        self,
        workspace_id: str,
        event_type: str,
        webhook_url: str,
        *,
        secret: str | None = None,
    ) -> SubscriptionDescriptor:
        """Create a webhook subscription."""
        ...

    async def delete_subscription(self, subscription_id: str) -> None:
        """Delete a notification subscription."""
        ...


def find_matching_subscriptions(
    subscriptions: cabc.Iterable[SubscriptionDescriptor],
    event_type: str,
    callback_url: str,
) -> tuple[SubscriptionDescriptor, ...]:
    """Return every subscription delivering ``event_type`` to the URL."""
    return tuple(
        sub for sub in subscriptions if sub.matches(event_type, callback_url)
    )


class NotificationReconciler:
    """Keep a single join-event subscription pointed at this service.

    Parameters
    ----------
    client
        Remote client used to list, create and delete subscriptions.
    config
        Provides the workspace id, public domain and optional secret.
    event_logger
        Structured event sink for each reconciliation decision.

    """

    def __init__(
        self,
        client: SubscriptionClient,
        config: ProvisionerConfig,
        *,
        event_logger: ProvisioningEventLogger | None = None,
    ) -> None:
        """Configure the reconciler with its collaborators."""
        self._client = client
        self._config = config
        self._events = event_logger or ProvisioningEventLogger()

    async def ensure_subscription(self) -> SubscriptionDescriptor | None:
        """Reconcile the subscription and return it.

        Returns
        -------
        SubscriptionDescriptor | None
            The reused or newly created subscription, or ``None`` when no
            public domain is configured.

        """
        callback_url = self._config.callback_url
        if callback_url is None:
            self._events.log_subscription_skipped(
                "public domain not configured; cannot build callback URL"
            )
            return None

        workspace_id = self._config.workspace_id
        secret = self._config.webhook_secret
        matches = find_matching_subscriptions(
            await self._client.list_subscriptions(workspace_id),
            MEMBER_JOINED_EVENT,
            callback_url,
        )

        # Only one subscription may remain. Without a secret the first match
        # is kept; with one every match is replaced by a signed subscription.
        if secret is None and matches:
            kept, *duplicates = matches
            await self._delete_all(duplicates)
            self._events.log_subscription_reused(kept.id, callback_url)
            return kept

        await self._delete_all(matches)
        created = await self._client.create_subscription(
            workspace_id,
            MEMBER_JOINED_EVENT,
            callback_url,
            secret=secret,
        )
        self._events.log_subscription_created(
            created.id,
            callback_url,
            replaced_id=matches[0].id if matches else None,
            signed=secret is not None,
        )
        return created

    async def _delete_all(
        self, subscriptions: cabc.Iterable[SubscriptionDescriptor]
    ) -> None:
        for subscription in subscriptions:
            await self._client.delete_subscription(subscription.id)
            self._events.log_subscription_deleted(subscription.id)
