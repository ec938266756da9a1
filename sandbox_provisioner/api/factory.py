"""Factory wiring the provisioner components from configuration.

This module provides ``build_app_dependencies()`` which constructs the
remote client, provisioning service and subscription reconciler from a
validated :class:`~sandbox_provisioner.config.ProvisionerConfig` and groups
them into :class:`~sandbox_provisioner.api.app.AppDependencies`.

Usage
-----
Build dependencies for the API layer::

    from sandbox_provisioner.api.factory import build_app_dependencies

    deps = build_app_dependencies(ProvisionerConfig.from_env())

"""

from __future__ import annotations

import typing as typ

from sandbox_provisioner.api.app import AppDependencies
from sandbox_provisioner.notifications import NotificationReconciler
from sandbox_provisioner.provisioning import (
    ProvisioningEventLogger,
    ProvisioningGuard,
    ProvisioningService,
)
from sandbox_provisioner.remote import RemoteAPIConfig, RemoteGraphQLClient

if typ.TYPE_CHECKING:
    import httpx

    from sandbox_provisioner.config import ProvisionerConfig

__all__ = ["build_app_dependencies"]


def build_app_dependencies(
    config: ProvisionerConfig,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> AppDependencies:
    """Build the application dependencies for ``config``.

    Parameters
    ----------
    config
        Validated service configuration.
    http_client
        Optional HTTP client for the remote API, mainly for tests. When
        omitted the remote client owns one.

    Returns
    -------
    AppDependencies
        Dependencies for :func:`~sandbox_provisioner.api.app.create_app`.

    """
    remote_client = RemoteGraphQLClient(
        RemoteAPIConfig.from_provisioner_config(config),
        http_client=http_client,
    )
    event_logger = ProvisioningEventLogger()
    provisioning_service = ProvisioningService(
        remote_client,
        guard=ProvisioningGuard(),
        event_logger=event_logger,
        append_actor_suffix=config.project_name_actor_suffix,
    )
    reconciler = NotificationReconciler(
        remote_client,
        config,
        event_logger=event_logger,
    )
    return AppDependencies(
        provisioning_service=provisioning_service,
        webhook_secret=config.webhook_secret,
        reconciler=reconciler,
        remote_client=remote_client,
    )
