"""Structural validation of decoded webhook bodies."""

from __future__ import annotations

import typing as typ

from .models import InboundEvent

INVALID_JSON = "invalid_json"
INVALID_PAYLOAD = "invalid_payload"


class InvalidPayloadError(Exception):
    """Raised when a webhook body is undecodable or structurally invalid.

    Attributes
    ----------
    code
        Machine-stable error code (``invalid_json`` or ``invalid_payload``).
    reason
        Human-readable description of the failure.

    """

    def __init__(self, reason: str, *, code: str = INVALID_PAYLOAD) -> None:
        """Initialise with a reason and machine-stable code."""
        self.reason = reason
        self.code = code
        super().__init__(reason)

    @classmethod
    def invalid_json(cls, detail: str) -> InvalidPayloadError:
        """Create error for a body that is not valid JSON."""
        return cls(f"Invalid JSON: {detail}", code=INVALID_JSON)

    @classmethod
    def invalid_structure(cls) -> InvalidPayloadError:
        """Create error for a body missing required event fields."""
        return cls("Invalid payload")


def _mapping(value: object) -> dict[str, typ.Any] | None:
    return value if isinstance(value, dict) else None


def _optional_str(value: object) -> str | None:
    return value if isinstance(value, str) else None


def is_valid_event_payload(value: object) -> bool:
    """Return whether a decoded body has the expected event shape.

    The body must be an object with a string ``type``, an object ``details``
    carrying string ``userId`` and ``email``, and an object chain
    ``resource.workspace`` carrying a string ``id``.

    Examples
    --------
    >>> is_valid_event_payload({"type": "WorkspaceMember.joined"})
    False

    """
    body = _mapping(value)
    if body is None or not isinstance(body.get("type"), str):
        return False

    details = _mapping(body.get("details"))
    if details is None:
        return False
    if not isinstance(details.get("userId"), str) or not isinstance(
        details.get("email"), str
    ):
        return False

    resource = _mapping(body.get("resource"))
    workspace = _mapping(resource.get("workspace")) if resource is not None else None
    return workspace is not None and isinstance(workspace.get("id"), str)


def parse_event(value: object) -> InboundEvent:
    """Build an :class:`InboundEvent` from a decoded webhook body.

    Raises
    ------
    InvalidPayloadError
        If the body fails :func:`is_valid_event_payload`.

    """
    if not is_valid_event_payload(value):
        raise InvalidPayloadError.invalid_structure()

    body = typ.cast("dict[str, typ.Any]", value)
    details = body["details"]
    workspace = body["resource"]["workspace"]
    return InboundEvent(
        event_type=body["type"],
        actor_id=details["userId"],
        actor_email=details["email"],
        workspace_id=workspace["id"],
        actor_role=_optional_str(details.get("role")),
        workspace_name=_optional_str(workspace.get("name")),
        severity=_optional_str(body.get("severity")),
        timestamp=_optional_str(body.get("timestamp")),
    )


__all__ = [
    "INVALID_JSON",
    "INVALID_PAYLOAD",
    "InvalidPayloadError",
    "is_valid_event_payload",
    "parse_event",
]
