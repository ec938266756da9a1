"""Remote GraphQL API errors and failure classification."""

from __future__ import annotations

import enum
import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc

_HTTP_RATE_LIMITED = 429
_HTTP_SERVER_ERROR_THRESHOLD = 500
_CONTENT_PREVIEW_LIMIT = 100

# Lower-cased substrings the remote API uses when rejecting a create or add
# because the resource or relationship already exists.
ALREADY_MARKER = "already"
DUPLICATE_MARKER = "duplicate"
UNIQUE_CONSTRAINT_MARKER = "unique"
CONFLICT_MARKERS: tuple[str, ...] = (
    ALREADY_MARKER,
    DUPLICATE_MARKER,
    UNIQUE_CONSTRAINT_MARKER,
)


class FailureKind(enum.StrEnum):
    """Classification of a failed remote call."""

    RETRYABLE = "retryable"
    TERMINAL = "terminal"
    CONFLICT = "conflict"


def is_conflict_message(message: str) -> bool:
    """Return whether an error message reports an already-existing resource.

    The remote API does not expose structured error codes, so conflicts are
    recognised from the lower-cased message text.

    Examples
    --------
    >>> is_conflict_message("Project name already exists")
    True
    >>> is_conflict_message("Not Authorized")
    False

    """
    normalised = message.lower()
    return any(marker in normalised for marker in CONFLICT_MARKERS)


def is_retryable_status(status_code: int) -> bool:
    """Return whether an HTTP status should be retried."""
    return (
        status_code == _HTTP_RATE_LIMITED
        or status_code >= _HTTP_SERVER_ERROR_THRESHOLD
    )


def _preview(content: str) -> str:
    if len(content) > _CONTENT_PREVIEW_LIMIT:
        return content[:_CONTENT_PREVIEW_LIMIT] + "..."
    return content


class RemoteError(Exception):
    """Base exception for remote API failures."""


class RemoteAPIError(RemoteError):
    """Raised when the remote API rejects or fails a call.

    Attributes
    ----------
    kind
        Failure classification driving retry and conflict recovery.
    status_code
        HTTP status code, when the failure came from the HTTP layer.
    graphql_errors
        Raw GraphQL ``errors`` entries, when present.

    """

    def __init__(
        self,
        message: str,
        *,
        kind: FailureKind,
        status_code: int | None = None,
        graphql_errors: cabc.Sequence[typ.Any] | None = None,
    ) -> None:
        """Initialise the error with its classification."""
        self.kind = kind
        self.status_code = status_code
        self.graphql_errors = tuple(graphql_errors or ())
        super().__init__(message)

    @property
    def message(self) -> str:
        """Return the human-readable error message."""
        return str(self)

    @property
    def is_retryable(self) -> bool:
        """Return whether the call may succeed if attempted again."""
        return self.kind is FailureKind.RETRYABLE

    @property
    def is_conflict(self) -> bool:
        """Return whether the failure reports an already-existing resource."""
        return self.kind is FailureKind.CONFLICT

    @classmethod
    def _classified(
        cls,
        message: str,
        *,
        status_code: int | None = None,
        graphql_errors: cabc.Sequence[typ.Any] | None = None,
    ) -> RemoteAPIError:
        kind = (
            FailureKind.CONFLICT if is_conflict_message(message) else FailureKind.TERMINAL
        )
        return cls(
            message,
            kind=kind,
            status_code=status_code,
            graphql_errors=graphql_errors,
        )

    @classmethod
    def http_error(cls, status_code: int, body: str = "") -> RemoteAPIError:
        """Create error for a non-2xx HTTP response.

        429 and 5xx responses are retryable; every other status is terminal
        unless the body reports a conflict.
        """
        if is_retryable_status(status_code):
            return cls(
                f"Remote API returned {status_code}",
                kind=FailureKind.RETRYABLE,
                status_code=status_code,
            )
        message = f"Remote API error: {status_code} {_preview(body)}".rstrip()
        return cls._classified(message, status_code=status_code)

    @classmethod
    def graphql_errors_payload(cls, errors: cabc.Sequence[typ.Any]) -> RemoteAPIError:
        """Create error for a GraphQL ``errors`` array in a 2xx response."""
        first = errors[0] if errors else None
        detail = (
            first.get("message")
            if isinstance(first, dict) and isinstance(first.get("message"), str)
            else str(first)
        )
        return cls._classified(f"GraphQL error: {detail}", graphql_errors=errors)

    @classmethod
    def timeout(cls) -> RemoteAPIError:
        """Create error for a request timeout."""
        return cls("Remote API request timed out", kind=FailureKind.RETRYABLE)

    @classmethod
    def network_error(cls, detail: str) -> RemoteAPIError:
        """Create error for DNS, connection or TLS failures."""
        return cls(f"Remote API network error: {detail}", kind=FailureKind.RETRYABLE)


class RemoteResponseShapeError(RemoteError):
    """Raised when a remote response is missing expected fields."""

    @classmethod
    def missing(cls, field: str) -> RemoteResponseShapeError:
        """Create error for a missing response field."""
        return cls(f"Remote API response missing expected field: {field}")

    @classmethod
    def invalid_json(cls, content: str) -> RemoteResponseShapeError:
        """Create error for a response body that is not JSON."""
        return cls(f"Failed to parse JSON from response: {_preview(content)}")


class RemoteConfigError(RemoteError):
    """Raised when the remote client configuration is invalid."""

    @classmethod
    def empty_token(cls) -> RemoteConfigError:
        """Create error when the provided API token is empty."""
        return cls("Remote API token must be non-empty")


__all__ = [
    "CONFLICT_MARKERS",
    "FailureKind",
    "RemoteAPIError",
    "RemoteConfigError",
    "RemoteError",
    "RemoteResponseShapeError",
    "is_conflict_message",
    "is_retryable_status",
]
