"""Observability primitives for provisioning and reconciliation.

Provides structured logging and error categorisation for provisioning runs
and subscription reconciliation. Every event is emitted as a ``[event.type]``
prefixed ``key=value`` log line suitable for parsing by log aggregators.
"""

from __future__ import annotations

import enum
import typing as typ

from sandbox_provisioner.config import ConfigError
from sandbox_provisioner.logging import (
    SupportsLog,
    get_logger,
    log_error,
    log_info,
    log_warning,
)
from sandbox_provisioner.remote.errors import (
    FailureKind,
    RemoteAPIError,
    RemoteConfigError,
    RemoteResponseShapeError,
)

from .errors import ProvisioningError

if typ.TYPE_CHECKING:
    from sandbox_provisioner.remote.models import ProjectHandle

    from .models import ProvisioningResult


class ProvisioningEventType(enum.StrEnum):
    """Structured log event types for provisioning observability."""

    RUN_STARTED = "provisioning.run.started"
    RUN_COMPLETED = "provisioning.run.completed"
    RUN_FAILED = "provisioning.run.failed"
    PROJECT_CREATED = "provisioning.project.created"
    PROJECT_REUSED = "provisioning.project.reused"
    MEMBER_GRANTED = "provisioning.member.granted"
    MEMBER_ALREADY_PRESENT = "provisioning.member.already_present"
    SUBSCRIPTION_SKIPPED = "subscription.skipped"
    SUBSCRIPTION_REUSED = "subscription.reused"
    SUBSCRIPTION_DELETED = "subscription.deleted"
    SUBSCRIPTION_CREATED = "subscription.created"
    SUBSCRIPTION_RECREATED = "subscription.recreated"


class ErrorCategory(enum.StrEnum):
    """Machine-stable categories reported with failures."""

    TRANSIENT = "transient"
    CONFLICT = "conflict"
    CLIENT_ERROR = "client_error"
    SCHEMA_DRIFT = "schema_drift"
    CONFIGURATION = "configuration"
    PROVISIONING = "provisioning"
    UNKNOWN = "unknown"


_FAILURE_KIND_CATEGORY: dict[FailureKind, ErrorCategory] = {
    FailureKind.RETRYABLE: ErrorCategory.TRANSIENT,
    FailureKind.CONFLICT: ErrorCategory.CONFLICT,
    FailureKind.TERMINAL: ErrorCategory.CLIENT_ERROR,
}

_EXCEPTION_CATEGORY_MAP: tuple[tuple[type[BaseException], ErrorCategory], ...] = (
    (RemoteResponseShapeError, ErrorCategory.SCHEMA_DRIFT),
    (RemoteConfigError, ErrorCategory.CONFIGURATION),
    (ConfigError, ErrorCategory.CONFIGURATION),
    (ProvisioningError, ErrorCategory.PROVISIONING),
)


def categorize_error(exc: BaseException) -> ErrorCategory:
    """Categorise an exception for failure responses and alerting."""
    # RemoteAPIError carries its own classification
    if isinstance(exc, RemoteAPIError):
        return _FAILURE_KIND_CATEGORY[exc.kind]

    for exc_type, category in _EXCEPTION_CATEGORY_MAP:
        if isinstance(exc, exc_type):
            return category

    return ErrorCategory.UNKNOWN


class ProvisioningEventLogger:
    """Emit structured provisioning and reconciliation events.

    Events are emitted at INFO for progress, WARNING for recovered conflicts
    and skipped reconciliation, and ERROR for failures.
    """

    def __init__(self, logger: SupportsLog | None = None) -> None:
        """Initialise with an optional logger (defaults to this module's)."""
        self._logger = logger if logger is not None else get_logger(__name__)

    @property
    def logger(self) -> SupportsLog:
        """Return the underlying logger."""
        return self._logger

    def log_run_started(
        self, actor_id: str, actor_email: str, workspace_id: str
    ) -> None:
        """Log provisioning run start."""
        log_info(
            self._logger,
            "[%s] actor_id=%s actor_email=%s workspace_id=%s",
            ProvisioningEventType.RUN_STARTED,
            actor_id,
            actor_email,
            workspace_id,
        )

    def log_project_created(self, project: ProjectHandle) -> None:
        """Log a newly created project."""
        log_info(
            self._logger,
            "[%s] project_id=%s project_name=%s",
            ProvisioningEventType.PROJECT_CREATED,
            project.id,
            project.name,
        )

    def log_project_reused(self, project: ProjectHandle, error: RemoteAPIError) -> None:
        """Log recovery from a project-name conflict."""
        log_warning(
            self._logger,
            "[%s] project_id=%s project_name=%s conflict=%s",
            ProvisioningEventType.PROJECT_REUSED,
            project.id,
            project.name,
            error.message,
        )

    def log_member_granted(self, actor_id: str, project_id: str, role: str) -> None:
        """Log a project role grant."""
        log_info(
            self._logger,
            "[%s] actor_id=%s project_id=%s role=%s",
            ProvisioningEventType.MEMBER_GRANTED,
            actor_id,
            project_id,
            role,
        )

    def log_member_already_present(
        self, actor_id: str, project_id: str, error: RemoteAPIError
    ) -> None:
        """Log recovery from a membership conflict."""
        log_warning(
            self._logger,
            "[%s] actor_id=%s project_id=%s conflict=%s",
            ProvisioningEventType.MEMBER_ALREADY_PRESENT,
            actor_id,
            project_id,
            error.message,
        )

    def log_run_completed(self, result: ProvisioningResult) -> None:
        """Log successful provisioning."""
        log_info(
            self._logger,
            "[%s] actor_id=%s project_id=%s project_name=%s "
            "workspace_role=%s project_role=%s",
            ProvisioningEventType.RUN_COMPLETED,
            result.actor_id,
            result.project_id,
            result.project_name,
            result.workspace_role,
            result.project_role,
        )

    def log_run_failed(self, actor_id: str, error: BaseException) -> None:
        """Log failed provisioning with error categorisation."""
        log_error(
            self._logger,
            "[%s] actor_id=%s error_type=%s error_category=%s error_message=%s",
            ProvisioningEventType.RUN_FAILED,
            actor_id,
            type(error).__name__,
            categorize_error(error),
            str(error),
            exc_info=error,
        )

    def log_subscription_skipped(self, reason: str) -> None:
        """Log skipped reconciliation."""
        log_warning(
            self._logger,
            "[%s] reason=%s",
            ProvisioningEventType.SUBSCRIPTION_SKIPPED,
            reason,
        )

    def log_subscription_reused(self, subscription_id: str, callback_url: str) -> None:
        """Log an existing subscription kept as-is."""
        log_info(
            self._logger,
            "[%s] subscription_id=%s callback_url=%s",
            ProvisioningEventType.SUBSCRIPTION_REUSED,
            subscription_id,
            callback_url,
        )

    def log_subscription_deleted(self, subscription_id: str) -> None:
        """Log deletion of a subscription before recreating it."""
        log_info(
            self._logger,
            "[%s] subscription_id=%s",
            ProvisioningEventType.SUBSCRIPTION_DELETED,
            subscription_id,
        )

    def log_subscription_created(
        self,
        subscription_id: str,
        callback_url: str,
        *,
        replaced_id: str | None = None,
        signed: bool = False,
    ) -> None:
        """Log creation (or recreation) of a subscription."""
        event = (
            ProvisioningEventType.SUBSCRIPTION_CREATED
            if replaced_id is None
            else ProvisioningEventType.SUBSCRIPTION_RECREATED
        )
        log_info(
            self._logger,
            "[%s] subscription_id=%s replaced_id=%s callback_url=%s signed=%s",
            event,
            subscription_id,
            replaced_id,
            callback_url,
            signed,
        )


__all__ = [
    "ErrorCategory",
    "ProvisioningEventLogger",
    "ProvisioningEventType",
    "categorize_error",
]
