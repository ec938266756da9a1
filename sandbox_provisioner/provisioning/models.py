"""Provisioning roles and results."""

from __future__ import annotations

import enum

import msgspec


class WorkspaceRole(enum.StrEnum):
    """Workspace-level roles on the remote platform."""

    VIEWER = "VIEWER"
    MEMBER = "MEMBER"
    ADMIN = "ADMIN"


class ProjectRole(enum.StrEnum):
    """Project-level roles on the remote platform."""

    VIEWER = "VIEWER"
    ADMIN = "ADMIN"


# Fixed two-tier grant: restricted in the workspace, elevated in the sandbox.
RESTRICTED_WORKSPACE_ROLE = WorkspaceRole.VIEWER
ELEVATED_PROJECT_ROLE = ProjectRole.ADMIN


class ProvisioningResult(msgspec.Struct, frozen=True, kw_only=True, rename="camel"):
    """Observable outcome of a provisioning run.

    Serialises with camelCase keys (``actorId``, ``projectId``, ...).
    Repeated runs for the same actor converge to an equal result.
    """

    actor_id: str
    actor_email: str
    project_id: str
    project_name: str
    workspace_role: WorkspaceRole = RESTRICTED_WORKSPACE_ROLE
    project_role: ProjectRole = ELEVATED_PROJECT_ROLE

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-compatible mapping with camelCase keys."""
        return msgspec.to_builtins(self)


__all__ = [
    "ELEVATED_PROJECT_ROLE",
    "RESTRICTED_WORKSPACE_ROLE",
    "ProjectRole",
    "ProvisioningResult",
    "WorkspaceRole",
]
