"""HMAC-SHA256 signatures for inbound webhook requests.

Signatures are computed over the exact raw request body; re-serialised JSON
is not guaranteed to be byte-identical, so verification must happen before
the body is decoded.
"""

from __future__ import annotations

import hashlib
import hmac

SIGNATURE_HEADER = "x-webhook-signature"


def compute_signature(payload: bytes, secret: str) -> str:
    """Return the lowercase hex HMAC-SHA256 of ``payload`` keyed by ``secret``."""
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def verify_signature(payload: bytes, signature: str | None, secret: str) -> bool:
    """Validate a webhook signature.

    Args:
        payload: Raw request body.
        signature: Value of the ``x-webhook-signature`` header, if any.
        secret: Configured shared secret.

    Returns:
        True when the signature matches; False for a missing, malformed or
        mismatched signature.

    """
    if not signature:
        return False
    expected = compute_signature(payload, secret)
    return hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8"))


__all__ = ["SIGNATURE_HEADER", "compute_signature", "verify_signature"]
