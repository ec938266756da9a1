"""Idempotent sandbox provisioning workflow."""

from __future__ import annotations

from .errors import ProvisioningError
from .guard import ProvisioningGuard
from .models import ProjectRole, ProvisioningResult, WorkspaceRole
from .naming import derive_project_name
from .observability import (
    ErrorCategory,
    ProvisioningEventLogger,
    ProvisioningEventType,
    categorize_error,
)
from .service import ProvisioningClient, ProvisioningService

__all__ = [
    "ErrorCategory",
    "ProjectRole",
    "ProvisioningClient",
    "ProvisioningError",
    "ProvisioningEventLogger",
    "ProvisioningEventType",
    "ProvisioningGuard",
    "ProvisioningResult",
    "ProvisioningService",
    "WorkspaceRole",
    "categorize_error",
    "derive_project_name",
]
