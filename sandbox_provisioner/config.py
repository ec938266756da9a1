"""Environment-driven configuration for the sandbox provisioner.

Configuration is loaded and validated once, before any component is built,
then passed explicitly to the components that need it.

Usage
-----
Load configuration from an environment mapping:

>>> config = ProvisionerConfig.from_env(
...     {"RAILWAY_API_TOKEN": "token", "WORKSPACE_ID": "ws-123"}
... )
>>> config.workspace_id
'ws-123'

"""

from __future__ import annotations

import dataclasses as dc
import os
import typing as typ

DEFAULT_API_ENDPOINT = "https://backboard.railway.com/graphql/v2"
DEFAULT_TIMEOUT_S = 20.0

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"", "0", "false", "no", "off"})


class ConfigError(Exception):
    """Raised when environment configuration is missing or invalid."""

    @classmethod
    def missing(cls, env_var: str) -> ConfigError:
        """Create error for a required environment variable that is unset."""
        return cls(f"{env_var} is required")

    @classmethod
    def invalid_flag(cls, env_var: str, value: str) -> ConfigError:
        """Create error for a boolean flag with an unrecognised value."""
        return cls(f"{env_var} must be a boolean flag, got: {value!r}")


def _optional(env: typ.Mapping[str, str], name: str) -> str | None:
    value = env.get(name, "").strip()
    return value or None


def _required(env: typ.Mapping[str, str], name: str) -> str:
    value = _optional(env, name)
    if value is None:
        raise ConfigError.missing(name)
    return value


def _flag(env: typ.Mapping[str, str], name: str) -> bool:
    raw = env.get(name, "")
    normalised = raw.strip().lower()
    if normalised in _TRUE_VALUES:
        return True
    if normalised in _FALSE_VALUES:
        return False
    raise ConfigError.invalid_flag(name, raw)


@dc.dataclass(frozen=True, slots=True)
class ProvisionerConfig:
    """Configuration shared by the provisioning components.

    Attributes
    ----------
    api_token
        Bearer token for the remote GraphQL API.
    workspace_id
        Workspace whose notification subscriptions are reconciled.
    webhook_secret
        Shared secret for webhook signatures. When ``None`` inbound requests
        are accepted unauthenticated.
    public_domain
        Public host name of this service, used to build the callback URL.
        When ``None`` subscription reconciliation is skipped.
    api_endpoint
        GraphQL endpoint URL.
    timeout_s
        Per-request timeout for remote calls.
    project_name_actor_suffix
        Append the tail of the actor id to derived project names.

    """

    api_token: str
    workspace_id: str
    webhook_secret: str | None = None
    public_domain: str | None = None
    api_endpoint: str = DEFAULT_API_ENDPOINT
    timeout_s: float = DEFAULT_TIMEOUT_S
    project_name_actor_suffix: bool = False

    @property
    def callback_url(self) -> str | None:
        """Return the webhook callback URL, or ``None`` without a domain."""
        if self.public_domain is None:
            return None
        return f"https://{self.public_domain}/webhook"

    @classmethod
    def from_env(cls, env: typ.Mapping[str, str] | None = None) -> ProvisionerConfig:
        """Create configuration from environment variables.

        Reads ``RAILWAY_API_TOKEN`` and ``WORKSPACE_ID`` (required) and
        ``WEBHOOK_SECRET``, ``RAILWAY_PUBLIC_DOMAIN``, ``RAILWAY_API_ENDPOINT``
        and ``PROJECT_NAME_ACTOR_SUFFIX`` (optional).

        Raises
        ------
        ConfigError
            If a required variable is missing or a flag is malformed.

        """
        source = os.environ if env is None else env
        return cls(
            api_token=_required(source, "RAILWAY_API_TOKEN"),
            workspace_id=_required(source, "WORKSPACE_ID"),
            webhook_secret=_optional(source, "WEBHOOK_SECRET"),
            public_domain=_optional(source, "RAILWAY_PUBLIC_DOMAIN"),
            api_endpoint=_optional(source, "RAILWAY_API_ENDPOINT")
            or DEFAULT_API_ENDPOINT,
            project_name_actor_suffix=_flag(source, "PROJECT_NAME_ACTOR_SUFFIX"),
        )


__all__ = [
    "DEFAULT_API_ENDPOINT",
    "ConfigError",
    "ProvisionerConfig",
]
