"""Domain exceptions and Falcon error handlers for the API layer.

Every failure response carries a machine-stable ``error`` code and a
human-readable ``message``.

Usage
-----
Register error handlers on the Falcon app::

    from sandbox_provisioner.api.errors import register_error_handlers

    register_error_handlers(app)

"""

from __future__ import annotations

import typing as typ

import falcon

from sandbox_provisioner.provisioning.errors import ProvisioningError
from sandbox_provisioner.provisioning.observability import categorize_error
from sandbox_provisioner.remote.errors import RemoteError
from sandbox_provisioner.webhooks.validation import InvalidPayloadError

if typ.TYPE_CHECKING:
    import falcon.asgi
    from falcon.asgi import Request, Response

__all__ = [
    "INVALID_SIGNATURE",
    "PROVISIONING_FAILED",
    "InvalidPayloadError",
    "InvalidSignatureError",
    "handle_invalid_payload",
    "handle_invalid_signature",
    "handle_provisioning_failure",
    "register_error_handlers",
]

INVALID_SIGNATURE = "invalid_signature"
PROVISIONING_FAILED = "provisioning_failed"


class InvalidSignatureError(Exception):
    """Raised when a webhook signature is missing or does not match."""

    def __init__(self) -> None:
        """Initialise with a fixed message."""
        super().__init__("Invalid signature")


async def handle_invalid_signature(
    _req: Request,
    resp: Response,
    ex: InvalidSignatureError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``InvalidSignatureError`` to an HTTP 401 JSON response."""
    resp.status = falcon.HTTP_401
    resp.media = {"error": INVALID_SIGNATURE, "message": str(ex)}


async def handle_invalid_payload(
    _req: Request,
    resp: Response,
    ex: InvalidPayloadError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``InvalidPayloadError`` to an HTTP 400 JSON response.

    Parameters
    ----------
    _req
        Falcon request (unused).
    resp
        Falcon response whose status and media are set.
    ex
        The validation exception carrying its code and reason.
    _params
        URI template parameters (unused).

    """
    resp.status = falcon.HTTP_400
    resp.media = {"error": ex.code, "message": ex.reason}


async def handle_provisioning_failure(
    _req: Request,
    resp: Response,
    ex: ProvisioningError | RemoteError,
    _params: dict[str, typ.Any],
) -> None:
    """Map provisioning and remote failures to an HTTP 500 JSON response.

    The original failure message is passed through untouched, alongside the
    error category used for alert routing.
    """
    resp.status = falcon.HTTP_500
    resp.media = {
        "error": PROVISIONING_FAILED,
        "category": str(categorize_error(ex)),
        "message": str(ex),
    }


def register_error_handlers(app: falcon.asgi.App) -> None:
    """Register the domain error handlers on ``app``."""
    app.add_error_handler(InvalidSignatureError, handle_invalid_signature)
    app.add_error_handler(InvalidPayloadError, handle_invalid_payload)
    app.add_error_handler(ProvisioningError, handle_provisioning_failure)
    app.add_error_handler(RemoteError, handle_provisioning_failure)
