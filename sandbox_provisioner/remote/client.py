"""Resilient GraphQL client for the remote workspace platform.

Every remote operation goes through :meth:`RemoteGraphQLClient.execute`,
which retries transient failures with capped exponential backoff and raises
classified :class:`~sandbox_provisioner.remote.errors.RemoteAPIError`
instances for everything else.
"""

from __future__ import annotations

import asyncio
import collections.abc as cabc
import dataclasses
import typing as typ

import httpx
import msgspec

from sandbox_provisioner.config import DEFAULT_API_ENDPOINT, DEFAULT_TIMEOUT_S
from sandbox_provisioner.logging import SupportsLog, get_logger, log_warning

from .errors import RemoteAPIError, RemoteConfigError, RemoteResponseShapeError
from .models import (
    WEBHOOK_CHANNEL,
    ProjectHandle,
    ProjectMembership,
    SubscriptionDescriptor,
    WorkspaceMember,
)

if typ.TYPE_CHECKING:
    from sandbox_provisioner.config import ProvisionerConfig

_HTTP_ERROR_STATUS_THRESHOLD = 300


def _default_logger() -> SupportsLog:
    return get_logger(__name__)


Sleep = cabc.Callable[[float], cabc.Awaitable[None]]
T = typ.TypeVar("T")


@dataclasses.dataclass(frozen=True, slots=True)
class RemoteAPIConfig:
    """Configuration for the remote GraphQL API client."""

    token: str
    endpoint: str = DEFAULT_API_ENDPOINT
    timeout_s: float = DEFAULT_TIMEOUT_S
    user_agent: str = "sandbox-provisioner/0.1"

    @classmethod
    def from_provisioner_config(cls, config: ProvisionerConfig) -> RemoteAPIConfig:
        """Build client configuration from the service configuration."""
        return cls(
            token=config.api_token,
            endpoint=config.api_endpoint,
            timeout_s=config.timeout_s,
        )


@dataclasses.dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Bounded retry with capped exponential backoff.

    Attributes
    ----------
    max_retries
        Retries allowed after the first attempt.
    base_delay_s
        Delay before the first retry.
    max_delay_s
        Upper bound for any single delay.

    """

    max_retries: int = 3
    base_delay_s: float = 0.5
    max_delay_s: float = 5.0

    @property
    def max_attempts(self) -> int:
        """Return the total number of attempts, including the first."""
        return self.max_retries + 1

    def delay_for(self, retry: int) -> float:
        """Return the delay in seconds before retry number ``retry`` (1-based)."""
        if retry < 1:
            msg = f"retry must be >= 1, got {retry}"
            raise ValueError(msg)
        return min(self.base_delay_s * 2 ** (retry - 1), self.max_delay_s)


_WORKSPACE_MEMBERS_QUERY = """
query workspaceMembers($workspaceId: String!) {
  workspace(workspaceId: $workspaceId) {
    members {
      edges {
        node {
          id
          role
          user {
            id
            email
          }
        }
      }
    }
  }
}
"""

_PROJECTS_QUERY = """
query projects($workspaceId: String!) {
  workspace(workspaceId: $workspaceId) {
    projects {
      edges {
        node {
          id
          name
        }
      }
    }
  }
}
"""

_PROJECT_CREATE_MUTATION = """
mutation projectCreate($input: ProjectCreateInput!) {
  projectCreate(input: $input) {
    id
    name
  }
}
"""

_PROJECT_MEMBER_ADD_MUTATION = """
mutation projectMemberAdd($input: ProjectMemberAddInput!) {
  projectMemberAdd(input: $input) {
    id
    email
    role
  }
}
"""

_NOTIFICATION_RULES_QUERY = """
query notificationRules($workspaceId: String!) {
  notificationRules(workspaceId: $workspaceId) {
    id
    eventTypes
    channelConfigs {
      type
      webhookUrl
    }
  }
}
"""

_NOTIFICATION_RULE_CREATE_MUTATION = """
mutation notificationRuleCreate($input: NotificationRuleCreateInput!) {
  notificationRuleCreate(input: $input) {
    id
    eventTypes
    channelConfigs {
      type
      webhookUrl
    }
  }
}
"""

_NOTIFICATION_RULE_DELETE_MUTATION = """
mutation notificationRuleDelete($id: String!) {
  notificationRuleDelete(id: $id)
}
"""


def _parse_graphql_payload(payload_raw: object) -> dict[str, typ.Any]:
    """Validate a GraphQL response payload and return its data field."""
    if not isinstance(payload_raw, dict):
        raise RemoteResponseShapeError.missing("response")

    errors = payload_raw.get("errors")
    if errors:
        raise RemoteAPIError.graphql_errors_payload(
            errors if isinstance(errors, list) else [errors]
        )

    data = payload_raw.get("data")
    if not isinstance(data, dict):
        raise RemoteResponseShapeError.missing("data")
    return data


def _traverse_path(data: dict[str, typ.Any], path: cabc.Sequence[str]) -> object:
    node: object = data
    for key in path:
        if not isinstance(node, dict):
            raise RemoteResponseShapeError.missing(".".join(path))
        node = node.get(key)
    if node is None:
        raise RemoteResponseShapeError.missing(".".join(path))
    return node


def _edge_nodes(data: dict[str, typ.Any], path: cabc.Sequence[str]) -> list[object]:
    """Return the ``node`` values of the connection found at ``path``."""
    edges = _traverse_path(data, [*path, "edges"])
    if not isinstance(edges, list):
        raise RemoteResponseShapeError.missing(".".join([*path, "edges"]))
    return [
        edge["node"] for edge in edges if isinstance(edge, dict) and "node" in edge
    ]


def _convert(value: object, target: type[T], *, field: str) -> T:
    try:
        return msgspec.convert(value, type=target)
    except msgspec.ValidationError as exc:
        raise RemoteResponseShapeError.missing(f"{field} ({exc})") from exc


class RemoteGraphQLClient:
    """GraphQL client with retry, backoff and failure classification.

    Parameters
    ----------
    config
        Endpoint, token and timeout configuration.
    http_client
        Optional ``httpx.AsyncClient``; when omitted the instance creates and
        owns its own client.
    retry_policy
        Retry bounds and backoff delays.
    sleep
        Awaitable used for backoff delays; injectable for tests.
    logger
        Logger receiving retry warnings.

    """

    def __init__(
        self,
        config: RemoteAPIConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
        retry_policy: RetryPolicy | None = None,
        sleep: Sleep = asyncio.sleep,
        logger: SupportsLog | None = None,
    ) -> None:
        """Initialise the client with the provided API configuration."""
        if not config.token.strip():
            raise RemoteConfigError.empty_token()

        self._config = config
        self._retry_policy = retry_policy or RetryPolicy()
        self._sleep = sleep
        self._logger = logger if logger is not None else _default_logger()
        # Sent per request so injected clients are authenticated too
        self._headers = {
            "Authorization": f"Bearer {config.token}",
            "User-Agent": config.user_agent,
            "Accept": "application/json",
        }
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=config.timeout_s)

    @property
    def retry_policy(self) -> RetryPolicy:
        """Return the retry policy applied to every call."""
        return self._retry_policy

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    async def execute(
        self, query: str, variables: dict[str, typ.Any] | None = None
    ) -> dict[str, typ.Any]:
        """Execute a GraphQL document and return its ``data`` payload.

        Retryable failures (429, 5xx, timeouts, network errors) are retried
        up to ``retry_policy.max_retries`` times. Terminal and conflict
        failures are raised immediately.

        Raises
        ------
        RemoteAPIError
            When the call fails terminally, reports a conflict, or exhausts
            its retries (the last retryable failure is raised).
        RemoteResponseShapeError
            When a successful response is not a GraphQL payload.

        """
        policy = self._retry_policy
        last_error: RemoteAPIError | None = None
        for attempt in range(policy.max_attempts):
            if attempt > 0:
                delay = policy.delay_for(attempt)
                log_warning(
                    self._logger,
                    "Retrying remote API request attempt=%d delay_s=%.3f reason=%s",
                    attempt,
                    delay,
                    last_error,
                )
                await self._sleep(delay)
            try:
                return await self._attempt(query, variables or {})
            except RemoteAPIError as exc:
                if not exc.is_retryable:
                    raise
                last_error = exc

        # max_attempts >= 1, so the loop ran and recorded a failure
        raise typ.cast("RemoteAPIError", last_error)

    async def _attempt(
        self, query: str, variables: dict[str, typ.Any]
    ) -> dict[str, typ.Any]:
        """Perform one HTTP round trip and validate the response."""
        try:
            response = await self._client.post(
                self._config.endpoint,
                json={"query": query, "variables": variables},
                headers=self._headers,
            )
        except httpx.TimeoutException as exc:
            raise RemoteAPIError.timeout() from exc
        except httpx.RequestError as exc:
            raise RemoteAPIError.network_error(str(exc)) from exc

        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise RemoteAPIError.http_error(response.status_code, response.text)

        try:
            payload_raw = response.json()
        except ValueError as exc:
            raise RemoteResponseShapeError.invalid_json(response.text) from exc
        return _parse_graphql_payload(payload_raw)

    async def list_workspace_members(
        self, workspace_id: str
    ) -> tuple[WorkspaceMember, ...]:
        """Return the members of a workspace."""
        data = await self.execute(
            _WORKSPACE_MEMBERS_QUERY, {"workspaceId": workspace_id}
        )
        nodes = _edge_nodes(data, ["workspace", "members"])
        return _convert(nodes, tuple[WorkspaceMember, ...], field="workspace.members")

    async def list_projects(self, workspace_id: str) -> tuple[ProjectHandle, ...]:
        """Return every project in a workspace."""
        data = await self.execute(_PROJECTS_QUERY, {"workspaceId": workspace_id})
        nodes = _edge_nodes(data, ["workspace", "projects"])
        return _convert(nodes, tuple[ProjectHandle, ...], field="workspace.projects")

    async def find_project_by_name(
        self, workspace_id: str, name: str
    ) -> ProjectHandle | None:
        """Return the project with exactly ``name``, or ``None``."""
        for project in await self.list_projects(workspace_id):
            if project.name == name:
                return project
        return None

    async def create_project(self, name: str, workspace_id: str) -> ProjectHandle:
        """Create a project in a workspace."""
        data = await self.execute(
            _PROJECT_CREATE_MUTATION,
            {"input": {"name": name, "workspaceId": workspace_id}},
        )
        return _convert(
            _traverse_path(data, ["projectCreate"]),
            ProjectHandle,
            field="projectCreate",
        )

    async def add_project_member(
        self, project_id: str, user_id: str, role: str
    ) -> ProjectMembership:
        """Grant ``role`` on a project to a user."""
        data = await self.execute(
            _PROJECT_MEMBER_ADD_MUTATION,
            {"input": {"projectId": project_id, "userId": user_id, "role": role}},
        )
        return _convert(
            _traverse_path(data, ["projectMemberAdd"]),
            ProjectMembership,
            field="projectMemberAdd",
        )

    async def list_subscriptions(
        self, workspace_id: str
    ) -> tuple[SubscriptionDescriptor, ...]:
        """Return the notification subscriptions of a workspace."""
        data = await self.execute(
            _NOTIFICATION_RULES_QUERY, {"workspaceId": workspace_id}
        )
        return _convert(
            _traverse_path(data, ["notificationRules"]),
            tuple[SubscriptionDescriptor, ...],
            field="notificationRules",
        )

    async def create_subscription(
        self,
        workspace_id: str,
        event_type: str,
        webhook_url: str,
        *,
        secret: str | None = None,
    ) -> SubscriptionDescriptor:
        """Create a webhook subscription for ``event_type``.

        When ``secret`` is given the platform signs deliveries with it.
        """
        channel: dict[str, str] = {"type": WEBHOOK_CHANNEL, "webhookUrl": webhook_url}
        if secret is not None:
            channel["webhookSecret"] = secret
        data = await self.execute(
            _NOTIFICATION_RULE_CREATE_MUTATION,
            {
                "input": {
                    "workspaceId": workspace_id,
                    "eventTypes": [event_type],
                    "channelConfigs": [channel],
                }
            },
        )
        return _convert(
            _traverse_path(data, ["notificationRuleCreate"]),
            SubscriptionDescriptor,
            field="notificationRuleCreate",
        )

    async def delete_subscription(self, subscription_id: str) -> None:
        """Delete a notification subscription."""
        await self.execute(_NOTIFICATION_RULE_DELETE_MUTATION, {"id": subscription_id})


__all__ = ["RemoteAPIConfig", "RemoteGraphQLClient", "RetryPolicy"]
