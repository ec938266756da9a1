"""Application factory for the provisioner Falcon ASGI application.

This module provides ``create_app()`` which builds the Falcon ASGI
application with identity and health endpoints and, when provisioning
dependencies are supplied, the ``POST /webhook`` endpoint and the lifespan
middleware that reconciles the notification subscription at startup.

Usage
-----
Create a health-only app::

    app = create_app()

Create a full app::

    from sandbox_provisioner.api.app import AppDependencies, create_app

    deps = AppDependencies(provisioning_service=service)
    app = create_app(deps)

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import falcon.asgi

from sandbox_provisioner.api.errors import register_error_handlers
from sandbox_provisioner.api.health.resources import (
    HealthResource,
    ReadyResource,
    RootResource,
)

if typ.TYPE_CHECKING:
    from sandbox_provisioner.notifications.reconciler import NotificationReconciler
    from sandbox_provisioner.provisioning.service import ProvisioningService
    from sandbox_provisioner.remote.client import RemoteGraphQLClient

__all__ = ["AppDependencies", "create_app"]


@dc.dataclass(frozen=True, slots=True)
class AppDependencies:
    """Dependencies for the Falcon ASGI application.

    Attributes
    ----------
    provisioning_service
        Service handling member-joined events.
    webhook_secret
        Shared secret for inbound signatures, or ``None`` to accept
        unauthenticated deliveries.
    reconciler
        Subscription reconciler run at startup, when provided.
    remote_client
        Remote client closed at shutdown, when provided.

    """

    provisioning_service: ProvisioningService
    webhook_secret: str | None = None
    reconciler: NotificationReconciler | None = None
    remote_client: RemoteGraphQLClient | None = None


def create_app(dependencies: AppDependencies | None = None) -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    Parameters
    ----------
    dependencies
        Optional application dependencies. When ``None``, only ``/``,
        ``/health`` and ``/ready`` are available.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    """
    middleware: list[object] = []
    if dependencies is not None:
        from sandbox_provisioner.api.middleware import ServiceLifecycle

        middleware.append(
            ServiceLifecycle(
                reconciler=dependencies.reconciler,
                remote_client=dependencies.remote_client,
            )
        )

    app = falcon.asgi.App(middleware=middleware)  # type: ignore[no-matching-overload]  # Falcon stubs

    app.add_route("/", RootResource())
    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource())

    if dependencies is not None:
        from sandbox_provisioner.api.webhooks.resources import WebhookResource

        app.add_route(
            "/webhook",
            WebhookResource(
                dependencies.provisioning_service,
                webhook_secret=dependencies.webhook_secret,
            ),
        )

    register_error_handlers(app)
    return app
