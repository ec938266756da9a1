"""Idempotent provisioning of a sandbox project for a new workspace member.

The workflow converges to the same end state however many times it runs for
the same actor: the project name is deterministic, and both "create
project" and "add member" treat the remote API's duplicate rejections as
confirmation that the state already exists.

Usage
-----
Provision a project for an actor::

    service = ProvisioningService(client)
    result = await service.provision("user-1", "john@example.com", "ws-123")

"""

from __future__ import annotations

import typing as typ

from sandbox_provisioner.remote.errors import RemoteAPIError, RemoteError

from .errors import ProvisioningError
from .guard import ProvisioningGuard
from .models import (
    ELEVATED_PROJECT_ROLE,
    RESTRICTED_WORKSPACE_ROLE,
    ProvisioningResult,
)
from .naming import actor_suffix, derive_project_name
from .observability import ProvisioningEventLogger

if typ.TYPE_CHECKING:
    from sandbox_provisioner.remote.models import ProjectHandle, ProjectMembership

__all__ = ["ProvisioningClient", "ProvisioningService"]


class ProvisioningClient(typ.Protocol):
    """Remote operations the provisioning workflow depends on."""

    async def create_project(self, name: str, workspace_id: str) -> ProjectHandle:
        """Create a project in a workspace."""
        ...

    async def find_project_by_name(
        self, workspace_id: str, name: str
    ) -> ProjectHandle | None:
        """Return the project with exactly ``name``, or ``None``."""
        ...

    async def add_project_member(
        self, project_id: str, user_id: str, role: str
    ) -> ProjectMembership:
        """Grant a project role to a user."""
        ...


class ProvisioningService:
    """Bring a sandbox project and its ADMIN grant to the desired state.

    Parameters
    ----------
    client
        Remote client; retries are its concern, not this service's.
    guard
        Optional keyed lock serialising runs for the same actor. A fresh
        guard is used when omitted.
    event_logger
        Structured event sink.
    append_actor_suffix
        Append the tail of the actor id to derived project names.

    """

    def __init__(
        self,
        client: ProvisioningClient,
        *,
        guard: ProvisioningGuard | None = None,
        event_logger: ProvisioningEventLogger | None = None,
        append_actor_suffix: bool = False,
    ) -> None:
        """Configure the service with its collaborators."""
        self._client = client
        self._guard = guard or ProvisioningGuard()
        self._events = event_logger or ProvisioningEventLogger()
        self._append_actor_suffix = append_actor_suffix

    def project_name_for(self, actor_id: str, actor_email: str) -> str:
        """Return the deterministic project name for an actor."""
        suffix = actor_suffix(actor_id) if self._append_actor_suffix else None
        return derive_project_name(actor_email, suffix=suffix)

    async def provision(
        self, actor_id: str, actor_email: str, workspace_id: str
    ) -> ProvisioningResult:
        """Provision the actor's sandbox project and return the outcome.

        Raises
        ------
        ProvisioningError
            If no project name can be derived, or a conflicting project
            cannot be found.
        RemoteAPIError
            For any remote failure other than the two recovered conflicts,
            carrying the original message.
        RemoteResponseShapeError
            If a remote response lacks the fields the workflow needs.

        """
        async with self._guard.hold(workspace_id, actor_id):
            self._events.log_run_started(actor_id, actor_email, workspace_id)
            try:
                result = await self._provision(actor_id, actor_email, workspace_id)
            except (ProvisioningError, RemoteError) as exc:
                self._events.log_run_failed(actor_id, exc)
                raise
            self._events.log_run_completed(result)
            return result

    async def _provision(
        self, actor_id: str, actor_email: str, workspace_id: str
    ) -> ProvisioningResult:
        project_name = self.project_name_for(actor_id, actor_email)
        if not project_name:
            raise ProvisioningError.empty_project_name(actor_email)

        project = await self._ensure_project(project_name, workspace_id)
        await self._ensure_membership(actor_id, project.id)
        return ProvisioningResult(
            actor_id=actor_id,
            actor_email=actor_email,
            project_id=project.id,
            project_name=project_name,
            workspace_role=RESTRICTED_WORKSPACE_ROLE,
            project_role=ELEVATED_PROJECT_ROLE,
        )

    async def _ensure_project(self, name: str, workspace_id: str) -> ProjectHandle:
        """Create the project, or resolve it by name when it already exists."""
        try:
            project = await self._client.create_project(name, workspace_id)
        except RemoteAPIError as exc:
            if not exc.is_conflict:
                raise
            existing = await self._client.find_project_by_name(workspace_id, name)
            if existing is None:
                raise ProvisioningError.project_not_found(name, workspace_id) from exc
            self._events.log_project_reused(existing, exc)
            return existing

        self._events.log_project_created(project)
        return project

    async def _ensure_membership(self, actor_id: str, project_id: str) -> None:
        """Grant the elevated project role unless the membership exists."""
        try:
            await self._client.add_project_member(
                project_id, actor_id, ELEVATED_PROJECT_ROLE
            )
        except RemoteAPIError as exc:
            if not exc.is_conflict:
                raise
            # An existing membership is accepted without checking its role.
            self._events.log_member_already_present(actor_id, project_id, exc)
            return

        self._events.log_member_granted(actor_id, project_id, ELEVATED_PROJECT_ROLE)
