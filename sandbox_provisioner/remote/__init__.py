"""Remote workspace platform client and its failure taxonomy."""

from __future__ import annotations

from .client import RemoteAPIConfig, RemoteGraphQLClient, RetryPolicy
from .errors import (
    CONFLICT_MARKERS,
    FailureKind,
    RemoteAPIError,
    RemoteConfigError,
    RemoteError,
    RemoteResponseShapeError,
    is_conflict_message,
)
from .models import (
    NotificationChannel,
    ProjectHandle,
    ProjectMembership,
    SubscriptionDescriptor,
    WorkspaceMember,
)

__all__ = [
    "CONFLICT_MARKERS",
    "FailureKind",
    "NotificationChannel",
    "ProjectHandle",
    "ProjectMembership",
    "RemoteAPIConfig",
    "RemoteAPIError",
    "RemoteConfigError",
    "RemoteError",
    "RemoteGraphQLClient",
    "RemoteResponseShapeError",
    "RetryPolicy",
    "SubscriptionDescriptor",
    "WorkspaceMember",
    "is_conflict_message",
]
