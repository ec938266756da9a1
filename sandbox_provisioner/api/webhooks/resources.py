"""Webhook resource receiving workspace events.

``POST /webhook`` authenticates the raw body when a secret is configured,
validates the event structure, ignores anything but member-joined events,
and provisions the member's sandbox project.

Usage
-----
Register the resource on the Falcon app::

    app.add_route(
        "/webhook",
        WebhookResource(provisioning_service, webhook_secret=secret),
    )

"""

from __future__ import annotations

import typing as typ

import falcon
import msgspec

from sandbox_provisioner.api.errors import InvalidSignatureError
from sandbox_provisioner.logging import (
    SupportsLog,
    get_logger,
    log_debug,
    log_warning,
)
from sandbox_provisioner.webhooks import (
    SIGNATURE_HEADER,
    InvalidPayloadError,
    parse_event,
    verify_signature,
)

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from sandbox_provisioner.provisioning.service import ProvisioningService

__all__ = ["WebhookResource"]


class WebhookResource:
    """Resource handling inbound workspace event deliveries."""

    def __init__(
        self,
        provisioning_service: ProvisioningService,
        *,
        webhook_secret: str | None = None,
        logger: SupportsLog | None = None,
    ) -> None:
        """Configure the resource.

        Parameters
        ----------
        provisioning_service
            Service provisioning the member's sandbox project.
        webhook_secret
            Shared secret for signature checks; ``None`` accepts every
            request unauthenticated.
        logger
            Logger for rejected and ignored deliveries.

        """
        self._provisioning = provisioning_service
        self._secret = webhook_secret
        self._logger = logger if logger is not None else get_logger(__name__)

    async def on_post(self, req: Request, resp: Response) -> None:
        """Handle POST /webhook deliveries.

        Raises
        ------
        InvalidSignatureError
            If a secret is configured and the signature does not match.
        InvalidPayloadError
            If the body is not JSON or lacks the required event fields.

        """
        raw_body = await req.stream.read()
        self._authenticate(raw_body, req.get_header(SIGNATURE_HEADER))

        try:
            body = msgspec.json.decode(raw_body)
        except msgspec.DecodeError as exc:
            raise InvalidPayloadError.invalid_json(str(exc)) from exc

        try:
            event = parse_event(body)
        except InvalidPayloadError:
            log_warning(self._logger, "Invalid webhook payload body=%r", body)
            raise

        if not event.is_member_joined:
            log_debug(self._logger, "Ignoring non-join event type=%s", event.event_type)
            resp.media = {"status": "ignored", "type": event.event_type}
            resp.status = falcon.HTTP_200
            return

        result = await self._provisioning.provision(
            event.actor_id,
            event.actor_email,
            event.workspace_id,
        )
        resp.media = {"status": "provisioned", **result.to_dict()}
        resp.status = falcon.HTTP_200

    def _authenticate(self, raw_body: bytes, signature: str | None) -> None:
        if self._secret is None:
            return
        if not verify_signature(raw_body, signature, self._secret):
            log_warning(
                self._logger,
                "Invalid webhook signature signature_present=%s",
                bool(signature),
            )
            raise InvalidSignatureError
