"""ASGI lifespan middleware for the provisioner application.

Runs subscription reconciliation once when the ASGI server starts and
closes the remote client when it shuts down.

Usage
-----
Register the middleware when creating the Falcon app::

    lifecycle = ServiceLifecycle(reconciler=reconciler, remote_client=client)
    app = falcon.asgi.App(middleware=[lifecycle])

"""

from __future__ import annotations

import typing as typ

from sandbox_provisioner.logging import (
    SupportsLog,
    get_logger,
    log_exception,
    log_info,
)
from sandbox_provisioner.remote.errors import RemoteError

if typ.TYPE_CHECKING:
    from sandbox_provisioner.notifications.reconciler import NotificationReconciler
    from sandbox_provisioner.remote.client import RemoteGraphQLClient

__all__ = ["ServiceLifecycle"]


class ServiceLifecycle:
    """Falcon middleware hooking reconciliation into the ASGI lifespan.

    A failed reconciliation is logged and does not prevent startup: the
    webhook endpoint keeps serving deliveries from any subscription that
    already exists, and the next restart reconciles again.

    Parameters
    ----------
    reconciler
        Reconciler run once at startup, when provided.
    remote_client
        Remote client closed at shutdown, when provided.
    logger
        Logger for lifecycle messages.

    """

    def __init__(
        self,
        *,
        reconciler: NotificationReconciler | None = None,
        remote_client: RemoteGraphQLClient | None = None,
        logger: SupportsLog | None = None,
    ) -> None:
        """Initialise the middleware with optional collaborators."""
        self._reconciler = reconciler
        self._remote_client = remote_client
        self._logger = logger if logger is not None else get_logger(__name__)

    async def process_startup(
        self, _scope: dict[str, typ.Any], _event: dict[str, typ.Any]
    ) -> None:
        """Reconcile the notification subscription on ASGI startup."""
        if self._reconciler is None:
            return
        try:
            subscription = await self._reconciler.ensure_subscription()
        except RemoteError as exc:
            log_exception(
                self._logger, "Notification subscription reconciliation failed", exc
            )
            return
        log_info(
            self._logger,
            "Notification subscription reconciled subscription_id=%s",
            subscription.id if subscription is not None else None,
        )

    async def process_shutdown(
        self, _scope: dict[str, typ.Any], _event: dict[str, typ.Any]
    ) -> None:
        """Close the remote client on ASGI shutdown."""
        if self._remote_client is not None:
            await self._remote_client.aclose()
