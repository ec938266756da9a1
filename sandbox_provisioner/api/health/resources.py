"""Service identity and health probe resources.

These resources are stateless and never call the remote API. They are
always registered, including in health-only mode.

Usage
-----
Register the probes on the Falcon app::

    from sandbox_provisioner.api.health.resources import (
        HealthResource,
        ReadyResource,
        RootResource,
    )

    app.add_route("/", RootResource())
    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource())

"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

__all__ = ["SERVICE_NAME", "HealthResource", "ReadyResource", "RootResource"]

SERVICE_NAME = "sandbox-provisioner"


class RootResource:
    """Identify the service at ``/``."""

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET / requests."""
        resp.content_type = "text/plain"
        resp.text = SERVICE_NAME
        resp.status = HTTPStatus.OK


class HealthResource:
    """Liveness probe resource returning ``{"status": "healthy"}``.

    Always responds with HTTP 200 to indicate the process is alive.

    """

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /health requests.

        Parameters
        ----------
        _req
            Falcon request (unused).
        resp
            Falcon response populated with liveness status.

        """
        resp.media = {"status": "healthy"}
        resp.status = HTTPStatus.OK


class ReadyResource:
    """Readiness probe resource returning ``{"status": "ready"}``."""

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /ready requests."""
        resp.media = {"status": "ready"}
        resp.status = HTTPStatus.OK
