"""Sandbox provisioner runtime entrypoint.

This module provides the ASGI application factory used by Granian. It
loads :class:`~sandbox_provisioner.config.ProvisionerConfig` from the
environment, wires the components through
:func:`~sandbox_provisioner.api.factory.build_app_dependencies`, and
delegates application construction to
:func:`sandbox_provisioner.api.app.create_app`.

Configuration is driven by environment variables:

- ``HOST``: Bind address (default ``0.0.0.0``)
- ``PORT``: Listen port (default ``3000``)
- ``LOG_LEVEL``: Log level (default ``INFO``)
- ``RAILWAY_API_TOKEN`` and ``WORKSPACE_ID``: required
- ``WEBHOOK_SECRET``, ``RAILWAY_PUBLIC_DOMAIN``, ``RAILWAY_API_ENDPOINT``,
  ``PROJECT_NAME_ACTOR_SUFFIX``: optional

Run the service directly with ``python -m sandbox_provisioner.runtime``.
"""

from __future__ import annotations

import os
import typing as typ

from sandbox_provisioner.config import ConfigError, ProvisionerConfig
from sandbox_provisioner.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_info,
    log_warning,
)

if typ.TYPE_CHECKING:
    import falcon.asgi

__all__ = ["create_app", "main"]

logger = get_logger(__name__)

# TCP port number range limits
_MIN_PORT = 1
_MAX_PORT = 65535
_DEFAULT_PORT = "3000"


def _parse_port(port_str: str) -> int:
    """Parse and validate a port number string.

    Raises
    ------
    SystemExit
        If port_str is not a valid integer in range 1-65535.

    """
    try:
        port = int(port_str)
        if not (_MIN_PORT <= port <= _MAX_PORT):
            msg = f"port {port} outside valid range {_MIN_PORT}-{_MAX_PORT}"
            raise ValueError(msg)  # noqa: TRY301 - unify conversion and range errors
    except ValueError as exc:
        log_error(
            logger,
            "Invalid PORT value: %r (must be %d-%d): %s",
            port_str,
            _MIN_PORT,
            _MAX_PORT,
            exc,
        )
        raise SystemExit(1) from exc
    return port


def _load_config() -> ProvisionerConfig:
    """Load configuration, exiting with status 1 when it is invalid."""
    try:
        return ProvisionerConfig.from_env()
    except ConfigError as exc:
        log_error(logger, "Invalid configuration: %s", exc)
        raise SystemExit(1) from exc


def create_app() -> falcon.asgi.App:
    """Create the fully wired Falcon ASGI application.

    Returns
    -------
    falcon.asgi.App
        Application serving ``/webhook`` plus the health endpoints.

    """
    from sandbox_provisioner.api.app import create_app as _create_api_app
    from sandbox_provisioner.api.factory import build_app_dependencies

    config = _load_config()
    if config.webhook_secret is None:
        log_warning(
            logger,
            "WEBHOOK_SECRET not set; webhook requests are accepted unauthenticated",
        )
    return _create_api_app(build_app_dependencies(config))


def main() -> None:
    """Start the provisioner server using Granian.

    Reads ``HOST``, ``PORT`` and ``LOG_LEVEL`` from the environment,
    validates the service configuration, and starts the ASGI server.
    """
    from granian import Granian
    from granian.constants import Interfaces

    host = os.environ.get("HOST", "0.0.0.0")  # noqa: S104 - bind all interfaces for container
    port = _parse_port(os.environ.get("PORT", _DEFAULT_PORT))
    log_level_str = os.environ.get("LOG_LEVEL", "INFO")

    normalized_level, invalid_level = configure_logging(log_level_str)
    if invalid_level:
        log_warning(
            logger,
            "Invalid LOG_LEVEL %r, falling back to %s",
            log_level_str,
            normalized_level,
        )

    # Fail fast before the server forks workers
    _load_config()

    log_info(
        logger,
        "Starting sandbox provisioner on %s:%d (log_level=%s)",
        host,
        port,
        normalized_level,
    )

    server = Granian(
        "sandbox_provisioner.runtime:create_app",
        address=host,
        port=port,
        interface=Interfaces.ASGI,
        factory=True,
    )
    server.serve()


if __name__ == "__main__":
    main()
