"""Inbound webhook authentication and payload validation."""

from __future__ import annotations

from .models import MEMBER_JOINED_EVENT, InboundEvent
from .signature import SIGNATURE_HEADER, compute_signature, verify_signature
from .validation import InvalidPayloadError, is_valid_event_payload, parse_event

__all__ = [
    "MEMBER_JOINED_EVENT",
    "SIGNATURE_HEADER",
    "InboundEvent",
    "InvalidPayloadError",
    "compute_signature",
    "is_valid_event_payload",
    "parse_event",
    "verify_signature",
]
